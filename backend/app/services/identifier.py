"""
Human-readable incident identifiers.

Identifiers look like ``030524-INC007``: the creation date as MMDDYY in
server-local time, then a per-day sequence number padded to three digits.

Numbers come from a per-day row in ``incident_sequences`` that is upserted
and incremented in a single statement, so two concurrent creations on the
same day can never read the same value. The first number issued for a day
is seeded from the incidents already carrying that prefix.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.incident_orm import IncidentORM, IncidentSequenceORM

logger = logging.getLogger(__name__)

ID_MARKER = "-INC"

_UPSERT_DIALECTS = {
    "sqlite": sqlite_insert,
    "postgresql": pg_insert,
}


def date_prefix(now: datetime) -> str:
    """MMDDYY for the given moment."""
    return now.strftime("%m%d%y")


def format_human_id(prefix: str, number: int) -> str:
    return f"{prefix}{ID_MARKER}{number:03d}"


async def count_existing(session: AsyncSession, prefix: str) -> int:
    """Number of incidents whose human_id carries this day prefix."""
    result = await session.execute(
        select(func.count())
        .select_from(IncidentORM)
        .where(IncidentORM.human_id.startswith(f"{prefix}{ID_MARKER}"))
    )
    return result.scalar_one()


async def _increment_sequence(session: AsyncSession, prefix: str) -> int:
    dialect = session.bind.dialect.name
    upsert = _UPSERT_DIALECTS.get(dialect)
    if upsert is None:
        raise RuntimeError(f"Incident sequences are not supported on {dialect}")

    seed = await count_existing(session, prefix) + 1
    table = IncidentSequenceORM.__table__
    stmt = (
        upsert(table)
        .values(prefix=prefix, value=seed)
        .on_conflict_do_update(
            index_elements=[table.c.prefix],
            set_={"value": table.c.value + 1},
        )
        .returning(table.c.value)
    )
    result = await session.execute(stmt)
    return result.scalar_one()


async def next_human_id(session: AsyncSession, now: Optional[datetime] = None) -> str:
    """
    Issue the next identifier for the day of ``now`` (defaults to local time).

    ``now`` is captured once; a creation that straddles midnight keeps the
    day it started on.
    """
    now = now or datetime.now()
    prefix = date_prefix(now)
    number = await _increment_sequence(session, prefix)
    human_id = format_human_id(prefix, number)
    logger.debug(f"Issued incident identifier {human_id}")
    return human_id
