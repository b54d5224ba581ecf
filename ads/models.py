"""
DeTransport Ads — models.

- AdSubmission: ad request collected by the bot; moderation flow pending → active/disabled,
  payment flow unpaid → waiting_review → paid. Media and receipt are external URLs only.
"""

from django.db import models
from django.utils import timezone


class AdSubmission(models.Model):
    """Core entity: ad submission with moderation and payment lifecycle."""

    class ModerationStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        ACTIVE = 'active', 'Active'
        DISABLED = 'disabled', 'Disabled'

    class PaymentStatus(models.TextChoices):
        UNPAID = 'unpaid', 'Unpaid'
        WAITING_REVIEW = 'waiting_review', 'Waiting review'
        PAID = 'paid', 'Paid'

    user_id = models.BigIntegerField(db_index=True, help_text='Telegram user id of the submitter')
    customer_name = models.CharField(max_length=128)
    title = models.CharField(max_length=128)
    description = models.TextField()
    link_url = models.URLField(max_length=2048)
    contact_info = models.CharField(max_length=255)
    media_url = models.URLField(max_length=2048, null=True, blank=True)
    tariff_days = models.PositiveIntegerField()
    price_amount = models.PositiveIntegerField(help_text='Price in UAH')
    moderation_status = models.CharField(
        max_length=16,
        choices=ModerationStatus.choices,
        default=ModerationStatus.PENDING,
        db_index=True,
    )
    payment_status = models.CharField(
        max_length=16,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNPAID,
        db_index=True,
    )
    payment_proof_url = models.URLField(max_length=2048, null=True, blank=True)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'ads_requests'
        ordering = ['-id']
        indexes = [
            models.Index(fields=['moderation_status', 'start_date', 'end_date'], name='ads_mod_window_idx'),
        ]
        verbose_name = 'Ad Submission'
        verbose_name_plural = 'Ad Submissions'

    def __str__(self):
        return f'#{self.pk} {self.title} ({self.moderation_status}/{self.payment_status})'
