"""Moderation transitions for submitted events and music videos."""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from processor.errors import ValidationError
from processor.models import ModerationStatus

# pending -> approved | rejected; both targets are terminal
TERMINAL_STATUSES = (ModerationStatus.APPROVED, ModerationStatus.REJECTED)


def parse_target_status(status: Optional[str]) -> ModerationStatus:
    """
    Validate the status a moderator asked for.

    Raises:
        ValidationError: For anything other than approved/rejected
    """
    try:
        target = ModerationStatus((status or '').strip().lower())
    except ValueError:
        raise ValidationError(f"Unsupported moderation status: {status}")
    if target not in TERMINAL_STATUSES:
        raise ValidationError('Status must be approved or rejected')
    return target


def moderation_changes(
    target: ModerationStatus,
    moderator_id: Optional[str],
    rejection_reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Attributes written when a pending record is approved or rejected."""
    now = now or datetime.now(timezone.utc)
    changes: Dict[str, Any] = {
        'status': target.value,
        'approved_by': moderator_id,
        'approved_at': now.isoformat(),
    }
    reason = (rejection_reason or '').strip()
    if target == ModerationStatus.REJECTED and reason:
        changes['rejection_reason'] = reason
    return changes
