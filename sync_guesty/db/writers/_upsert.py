"""
Generic single-row upsert with IS DISTINCT FROM optimization.

Listings and calendar days are both written through this helper. It
implements the IS DISTINCT FROM pattern so an unchanged vendor record does
not rewrite the row (updated_at stays put), and it returns the stored row
together with a flag telling whether the row was created by this write.
"""

from typing import Any, Optional

from sqlalchemy import and_, literal_column, or_, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.engine import Connection


def upsert_returning(
    conn: Connection,
    table: type,
    row: dict[str, Any],
    conflict_columns: list[str],
    distinct_columns: list[str],
    update_columns: Optional[list[str]] = None,
) -> tuple[dict[str, Any], bool]:
    """
    Insert a row, or update the row that owns the conflict key.

    The update only fires when at least one of ``distinct_columns`` differs
    from the stored value. ON CONFLICT makes the write atomic per key, so
    concurrent upserts of the same key never create a second row.

    Args:
        conn: Active database connection (within transaction)
        table: SQLAlchemy ORM class (e.g. Listing, CalendarDay)
        row: Column values to write
        conflict_columns: Columns of the unique constraint used as upsert key
        distinct_columns: Columns compared to decide whether an update is needed
        update_columns: Columns written on conflict (default: distinct_columns + updated_at)

    Returns:
        tuple: (stored row as a dict, True if the row was inserted by this call)

    Technical Details:
        - Uses PostgreSQL's ON CONFLICT DO UPDATE ... WHERE ... RETURNING
        - ``xmax = 0`` in RETURNING is true only for freshly inserted tuples
        - When the WHERE clause skips the update nothing is returned, so the
          current row is read back by its key
    """
    if update_columns is None:
        update_columns = [*distinct_columns, "updated_at"]

    columns = table.__table__.columns  # type: ignore[attr-defined]
    stmt = insert(table).values(row)

    set_dict = {col: getattr(stmt.excluded, col) for col in update_columns}
    distinct_check = or_(
        *(
            getattr(table, col).is_distinct_from(getattr(stmt.excluded, col))
            for col in distinct_columns
        )
    )

    stmt = stmt.on_conflict_do_update(
        index_elements=conflict_columns,
        set_=set_dict,
        where=distinct_check,
    ).returning(*columns, literal_column("(xmax = 0)").label("inserted"))

    result = conn.execute(stmt).mappings().first()
    if result is not None:
        stored = dict(result)
        inserted = bool(stored.pop("inserted"))
        return stored, inserted

    key_filter = and_(*(getattr(table, col) == row[col] for col in conflict_columns))
    existing = conn.execute(select(*columns).where(key_filter)).mappings().one()
    return dict(existing), False
