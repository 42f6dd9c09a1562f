import os

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEBUG = LOG_LEVEL == "DEBUG"

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise ValueError("DATABASE_URL must be set in the environment")

SCHEMA = "guesty"

REDIS_URL = os.getenv("REDIS_URL")
if not REDIS_URL:
    raise ValueError("REDIS_URL must be set in the environment to run the sync queue")

ALLOWED_ORIGINS_RAW = os.getenv("ALLOWED_ORIGINS")
if not ALLOWED_ORIGINS_RAW:
    raise ValueError("ALLOWED_ORIGINS must be set in the environment")

ALLOWED_ORIGINS: list[str] = [
    origin.strip() for origin in ALLOWED_ORIGINS_RAW.split(",")
]

# Guesty OAuth client; checked lazily by the token manager
GUESTY_CLIENT_ID = os.getenv("GUESTY_CLIENT_ID")
GUESTY_CLIENT_SECRET = os.getenv("GUESTY_CLIENT_SECRET")
GUESTY_TOKEN_URL = os.getenv("GUESTY_TOKEN_URL", "https://id.guesty.com/oauth/token")

GUESTY_API_BASE_URL = os.getenv("GUESTY_API_BASE_URL", "https://api.guesty.com/api/v2")
GUESTY_AVAILABILITY_PATH = os.getenv("GUESTY_AVAILABILITY_PATH", "/availability")
GUESTY_REQUEST_TIMEOUT = float(os.getenv("GUESTY_REQUEST_TIMEOUT", "30"))

GUESTY_LISTINGS_PAGE_SIZE = int(os.getenv("GUESTY_LISTINGS_PAGE_SIZE", "50"))
GUESTY_MAX_LISTING_PAGES = int(os.getenv("GUESTY_MAX_LISTING_PAGES", "200"))

# Used when the token endpoint omits expires_in (Guesty tokens live 24h)
GUESTY_DEFAULT_TOKEN_TTL_SECONDS = int(os.getenv("GUESTY_DEFAULT_TOKEN_TTL_SECONDS", "86400"))
TOKEN_EXPIRY_BUFFER_SECONDS = int(os.getenv("TOKEN_EXPIRY_BUFFER_SECONDS", "300"))

CALENDAR_WINDOW_MONTHS = int(os.getenv("CALENDAR_WINDOW_MONTHS", "6"))

SYNC_JOB_MAX_RETRIES = int(os.getenv("SYNC_JOB_MAX_RETRIES", "5"))
SYNC_JOB_RETRY_BACKOFF_MAX = int(os.getenv("SYNC_JOB_RETRY_BACKOFF_MAX", "600"))
SYNC_JOB_SOFT_TIME_LIMIT = int(os.getenv("SYNC_JOB_SOFT_TIME_LIMIT", "540"))
SYNC_JOB_TIME_LIMIT = int(os.getenv("SYNC_JOB_TIME_LIMIT", "600"))
