"""
DeTransport Ads — admin moderation workflow (list pending, approve, disable).

Authorization goes through an AdminPolicy so the single-admin rule can be replaced
(several admins, roles) without touching call sites. The policy is always checked
before the argument is parsed: an unauthorized caller learns nothing and changes nothing.
"""

import logging
from datetime import date

from django.conf import settings

from ads.exceptions import AccessDenied, MalformedCommandArgument, SubmissionNotFound
from ads.models import AdSubmission
from ads.services.repository import SubmissionRepository

logger = logging.getLogger(__name__)


class AdminPolicy:
    """Decides whether a Telegram user may run admin commands."""

    def is_admin(self, user_id: int) -> bool:
        raise NotImplementedError


class SingleAdminPolicy(AdminPolicy):
    """One configured admin id, compared as strings. Empty config means nobody is admin."""

    def __init__(self, admin_id: str | int | None = None):
        if admin_id is None:
            admin_id = getattr(settings, "ADS_ADMIN_TELEGRAM_ID", "")
        self.admin_id = str(admin_id or "").strip()

    def is_admin(self, user_id: int) -> bool:
        return bool(self.admin_id) and str(user_id) == self.admin_id


def parse_submission_id(raw: str | int | None, usage_key: str) -> int:
    """Return a positive integer id or raise MalformedCommandArgument(usage_key)."""
    text = str(raw if raw is not None else "").strip()
    if not (text.isascii() and text.isdigit()):
        raise MalformedCommandArgument(usage_key)
    value = int(text)
    if value <= 0:
        raise MalformedCommandArgument(usage_key)
    return value


class ModerationWorkflow:
    def __init__(self, repository: SubmissionRepository | None = None, policy: AdminPolicy | None = None):
        self.repository = repository or SubmissionRepository()
        self.policy = policy or SingleAdminPolicy()

    def _authorize(self, caller_id: int, operation: str) -> None:
        if not self.policy.is_admin(caller_id):
            logger.warning("Moderation denied: op=%s caller=%s", operation, caller_id)
            raise AccessDenied(operation)

    def list_pending(self, caller_id: int) -> list[AdSubmission]:
        self._authorize(caller_id, "list_pending")
        return self.repository.list_by_status(AdSubmission.ModerationStatus.PENDING)

    def approve(self, caller_id: int, raw_id, today: date | None = None) -> AdSubmission:
        self._authorize(caller_id, "approve")
        submission_id = parse_submission_id(raw_id, "usage_approve")
        submission = self.repository.approve(submission_id, today=today)
        if submission is None:
            raise SubmissionNotFound(submission_id)
        logger.info("Ad approved: id=%s by=%s", submission_id, caller_id)
        return submission

    def disable(self, caller_id: int, raw_id) -> AdSubmission:
        self._authorize(caller_id, "disable")
        submission_id = parse_submission_id(raw_id, "usage_disable")
        submission = self.repository.disable(submission_id)
        if submission is None:
            raise SubmissionNotFound(submission_id)
        logger.info("Ad disabled: id=%s by=%s", submission_id, caller_id)
        return submission
