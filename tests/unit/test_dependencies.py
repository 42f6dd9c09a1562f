"""
Unit tests for FastAPI dependency injection.
"""

from __future__ import annotations

from unittest.mock import Mock

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from sync_guesty.dependencies import get_db_engine, get_optional_scheduler, get_scheduler
from sync_guesty.jobs.scheduler import SyncScheduler


@pytest.mark.unit
def test_get_db_engine_yields_singleton() -> None:
    engine1 = next(get_db_engine())
    engine2 = next(get_db_engine())

    assert isinstance(engine1, Engine)
    assert engine1 is engine2


@pytest.mark.unit
def test_db_engine_dependency_can_be_overridden() -> None:
    app = FastAPI()

    @app.get("/engine")
    def engine_name(engine: Engine = Depends(get_db_engine)) -> dict[str, str]:
        return {"engine_name": engine.name}

    mock_engine = Mock(spec=Engine)
    mock_engine.name = "mock_engine"
    app.dependency_overrides[get_db_engine] = lambda: mock_engine

    response = TestClient(app).get("/engine")

    assert response.status_code == 200
    assert response.json() == {"engine_name": "mock_engine"}


def scheduler_app() -> FastAPI:
    app = FastAPI()

    @app.get("/scheduler")
    def scheduler_type(scheduler: SyncScheduler = Depends(get_scheduler)) -> dict[str, str]:
        return {"scheduler": type(scheduler).__name__}

    return app


@pytest.mark.unit
def test_get_scheduler_reads_app_state() -> None:
    app = scheduler_app()
    app.state.scheduler = Mock(spec=SyncScheduler)

    response = TestClient(app).get("/scheduler")

    assert response.status_code == 200


@pytest.mark.unit
def test_get_scheduler_unavailable_returns_503() -> None:
    response = TestClient(scheduler_app()).get("/scheduler")

    assert response.status_code == 503
    assert response.json()["detail"] == "Job scheduler is not available"


@pytest.mark.unit
def test_get_optional_scheduler_is_none_without_scheduler() -> None:
    request = Mock()
    request.app.state = object()

    assert get_optional_scheduler(request) is None


@pytest.mark.unit
def test_get_optional_scheduler_reads_app_state() -> None:
    scheduler = Mock(spec=SyncScheduler)
    request = Mock()
    request.app.state.scheduler = scheduler

    assert get_optional_scheduler(request) is scheduler
