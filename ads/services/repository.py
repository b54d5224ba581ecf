"""
DeTransport Ads — submission repository. Single place for AdSubmission reads and writes.
Every write targets one row; database errors surface as StorageFailure so callers can
reply with a generic message and never leak diagnostics to users.
"""

import logging
from datetime import date, timedelta

from django.db import DatabaseError
from django.db.models import Q
from django.utils import timezone

from ads.conf import MODERATION_PAGE_SIZE, PUBLICATION_PAGE_SIZE
from ads.exceptions import StorageFailure
from ads.models import AdSubmission

logger = logging.getLogger(__name__)

ORDERINGS = {"-id", "-created_at"}


class SubmissionRepository:
    """Persistence for AdSubmission with its moderation/payment transitions."""

    def create(self, user_id: int, media_url: str | None = None, **fields) -> int:
        """Insert a pending/unpaid submission. Returns its id."""
        try:
            submission = AdSubmission.objects.create(
                user_id=user_id,
                media_url=media_url,
                moderation_status=AdSubmission.ModerationStatus.PENDING,
                payment_status=AdSubmission.PaymentStatus.UNPAID,
                **fields,
            )
        except DatabaseError as e:
            raise StorageFailure("create failed") from e
        logger.info(
            "AdSubmission created: id=%s user=%s tariff_days=%s",
            submission.pk, user_id, submission.tariff_days,
        )
        return submission.pk

    def get(self, submission_id: int) -> AdSubmission | None:
        try:
            return AdSubmission.objects.filter(pk=submission_id).first()
        except DatabaseError as e:
            raise StorageFailure("get failed") from e

    def attach_payment_proof(self, submission_id: int, proof_url: str) -> None:
        """Store the receipt URL and move payment to waiting_review. Missing row is not an error."""
        try:
            updated = AdSubmission.objects.filter(pk=submission_id).update(
                payment_proof_url=proof_url,
                payment_status=AdSubmission.PaymentStatus.WAITING_REVIEW,
                updated_at=timezone.now(),
            )
        except DatabaseError as e:
            raise StorageFailure("attach_payment_proof failed") from e
        if not updated:
            logger.warning("attach_payment_proof: submission id=%s not found", submission_id)
        else:
            logger.info("Payment proof attached: id=%s", submission_id)

    def list_by_status(
        self,
        status: str,
        limit: int = MODERATION_PAGE_SIZE,
        order: str = "-id",
    ) -> list[AdSubmission]:
        if order not in ORDERINGS:
            raise ValueError(f"Unsupported order: {order}")
        try:
            return list(
                AdSubmission.objects.filter(moderation_status=status).order_by(order)[:limit]
            )
        except DatabaseError as e:
            raise StorageFailure("list_by_status failed") from e

    def approve(self, submission_id: int, today: date | None = None) -> AdSubmission | None:
        """
        Activate and mark paid; window is [today, today + tariff_days].
        Recomputed from today on every call. Returns None if the id does not exist.
        """
        today = today or timezone.localdate()
        try:
            submission = AdSubmission.objects.filter(pk=submission_id).first()
            if submission is None:
                return None
            submission.moderation_status = AdSubmission.ModerationStatus.ACTIVE
            submission.payment_status = AdSubmission.PaymentStatus.PAID
            submission.start_date = today
            submission.end_date = today + timedelta(days=submission.tariff_days)
            submission.save(update_fields=[
                "moderation_status", "payment_status", "start_date", "end_date", "updated_at",
            ])
        except DatabaseError as e:
            raise StorageFailure("approve failed") from e
        logger.info(
            "AdSubmission approved: id=%s window=%s..%s",
            submission.pk, submission.start_date, submission.end_date,
        )
        return submission

    def disable(self, submission_id: int) -> AdSubmission | None:
        """Move to disabled; dates untouched. Returns None if the id does not exist."""
        try:
            submission = AdSubmission.objects.filter(pk=submission_id).first()
            if submission is None:
                return None
            submission.moderation_status = AdSubmission.ModerationStatus.DISABLED
            submission.save(update_fields=["moderation_status", "updated_at"])
        except DatabaseError as e:
            raise StorageFailure("disable failed") from e
        logger.info("AdSubmission disabled: id=%s", submission.pk)
        return submission

    def list_active(self, today: date | None = None, limit: int = PUBLICATION_PAGE_SIZE) -> list[AdSubmission]:
        """Active submissions whose date window (open ends allowed) contains today, newest first."""
        today = today or timezone.localdate()
        try:
            qs = (
                AdSubmission.objects.filter(moderation_status=AdSubmission.ModerationStatus.ACTIVE)
                .filter(Q(start_date__isnull=True) | Q(start_date__lte=today))
                .filter(Q(end_date__isnull=True) | Q(end_date__gte=today))
                .order_by("-id")
            )
            return list(qs[:limit])
        except DatabaseError as e:
            raise StorageFailure("list_active failed") from e
