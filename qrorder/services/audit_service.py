"""Audit log helpers."""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from qrorder.models import AuditLog
from qrorder.services.role_resolver import Caller


def log_action(
    db: Session,
    *,
    actor: Caller,
    action_type: str,
    subject_id: str | None = None,
    before_snapshot: dict[str, Any] | None = None,
    after_snapshot: dict[str, Any] | None = None,
) -> None:
    """Stage an audit row; it commits with the caller's transaction."""
    db.add(
        AuditLog(
            actor_user_id=actor.user_id,
            actor_role=actor.role.value,
            action_type=action_type,
            subject_id=subject_id,
            before_snapshot=before_snapshot,
            after_snapshot=after_snapshot,
        )
    )
