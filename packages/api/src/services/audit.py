# This project was developed with assistance from AI tools.
"""Audit event service for export profile changes.

Writes append-only audit trail entries with a SHA-256 hash chain for tamper
evidence. On PostgreSQL an advisory lock serializes hash computation so
concurrent writers cannot fork the chain.
"""

import hashlib
import json
import logging

from db import AuditEvent
from db.enums import AuditEventType
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import OrgContext

logger = logging.getLogger(__name__)

# Fixed advisory lock key for audit trail serialization.
AUDIT_LOCK_KEY = 910_001


def _compute_hash(event_id: int, timestamp: str, event_data: dict | None) -> str:
    """Compute SHA-256 hash of an audit event's key fields."""
    payload = f"{event_id}|{timestamp}|{json.dumps(event_data, sort_keys=True, default=str)}"
    return hashlib.sha256(payload.encode()).hexdigest()


async def write_audit_event(
    session: AsyncSession,
    ctx: OrgContext,
    *,
    event_type: AuditEventType,
    profile_id: str | None = None,
    event_data: dict | None = None,
) -> AuditEvent:
    """Add an audit event to the current transaction.

    The caller commits; the event lands or rolls back with the profile
    change it describes.
    """
    if session.bind is not None and session.bind.dialect.name == "postgresql":
        # Released automatically when the transaction commits or rolls back.
        await session.execute(text(f"SELECT pg_advisory_xact_lock({AUDIT_LOCK_KEY})"))

    latest_stmt = select(AuditEvent).order_by(AuditEvent.id.desc()).limit(1)
    result = await session.execute(latest_stmt)
    prev_event = result.scalar_one_or_none()

    if prev_event is not None:
        prev_hash = _compute_hash(prev_event.id, str(prev_event.timestamp), prev_event.event_data)
    else:
        prev_hash = "genesis"

    audit = AuditEvent(
        event_type=event_type.value,
        org_id=ctx.org_id,
        user_id=ctx.user_id,
        profile_id=profile_id,
        event_data=event_data,
        prev_hash=prev_hash,
    )
    session.add(audit)
    await session.flush()
    return audit


async def verify_audit_chain(session: AsyncSession) -> dict:
    """Verify the integrity of the audit event hash chain.

    Returns:
        {"status": "OK", "events_checked": N} on success, or
        {"status": "TAMPERED", "first_break_id": id, "events_checked": N}
        if a mismatch is found.
    """
    stmt = select(AuditEvent).order_by(AuditEvent.id.asc())
    result = await session.execute(stmt)
    events = list(result.scalars().all())

    for i, event in enumerate(events):
        if i == 0:
            expected = "genesis"
        else:
            prev = events[i - 1]
            expected = _compute_hash(prev.id, str(prev.timestamp), prev.event_data)

        if event.prev_hash != expected:
            logger.warning("Audit chain broken at event %s", event.id)
            return {
                "status": "TAMPERED",
                "first_break_id": event.id,
                "events_checked": i + 1,
            }

    return {"status": "OK", "events_checked": len(events)}


async def get_profile_events(
    session: AsyncSession,
    ctx: OrgContext,
    profile_id: str,
) -> list[AuditEvent]:
    """Audit history of one profile, oldest first. Survives profile deletion."""
    stmt = (
        select(AuditEvent)
        .where(AuditEvent.org_id == ctx.org_id, AuditEvent.profile_id == profile_id)
        .order_by(AuditEvent.id.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
