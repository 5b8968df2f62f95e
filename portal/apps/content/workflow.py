"""
Approval status machine for posts and documents.

States: PENDING, APPROVED, REJECTED. There is no terminal state; an
approved item can be rejected later and vice versa.

    create (non-admin)  -> PENDING
    create (admin)      -> APPROVED, reviewer = creator
    approve             -> APPROVED, reviewer = caller      (from any state)
    reject              -> REJECTED, reviewer = caller      (from any state)
    resubmit            -> PENDING,  previous review kept as history

Functions here only move state. Who may call them is decided in
`portal.apps.content.policy`; persistence happens in the services.
"""

from datetime import datetime

from portal.apps.auth.schemas import Caller
from portal.apps.content.models import ContentMixin, ContentStatus


def _stamp_review(item: ContentMixin, status: ContentStatus, reviewer: Caller, now: datetime) -> None:
    item.status = status
    item.reviewed_by_id = reviewer.id
    item.reviewed_at = now
    item.updated_at = now


def open_review(item: ContentMixin, creator: Caller, now: datetime) -> None:
    """Initial status for a freshly created item."""
    if creator.is_admin:
        _stamp_review(item, ContentStatus.APPROVED, creator, now)
        return
    item.status = ContentStatus.PENDING
    item.reviewed_by_id = None
    item.reviewed_at = None


def approve(item: ContentMixin, reviewer: Caller, now: datetime) -> None:
    _stamp_review(item, ContentStatus.APPROVED, reviewer, now)


def reject(item: ContentMixin, reviewer: Caller, now: datetime) -> None:
    _stamp_review(item, ContentStatus.REJECTED, reviewer, now)


def decide(item: ContentMixin, reviewer: Caller, approved: bool, now: datetime) -> None:
    """Approve when `approved` is true, reject otherwise."""
    if approved:
        approve(item, reviewer, now)
    else:
        reject(item, reviewer, now)


def resubmit(item: ContentMixin, now: datetime) -> None:
    """Send an item back to the review queue.

    The last reviewer and review time stay until the next decision
    overwrites them.
    """
    item.status = ContentStatus.PENDING
    item.updated_at = now
