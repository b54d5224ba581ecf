"""
DeTransport Ads — Django admin registration.
Status and date window are read-only here; staff change them only through the
approve/disable actions, which go through SubmissionRepository like the bot commands.
"""

from django.contrib import admin

from .exceptions import StorageFailure
from .models import AdSubmission
from .services.repository import SubmissionRepository


@admin.register(AdSubmission)
class AdSubmissionAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'title', 'customer_name', 'tariff_days', 'price_amount',
        'moderation_status', 'payment_status', 'start_date', 'end_date', 'created_at',
    ]
    list_filter = ['moderation_status', 'payment_status', 'tariff_days']
    search_fields = ['title', 'description', 'customer_name', 'contact_info', 'user_id']
    readonly_fields = [
        'user_id', 'moderation_status', 'payment_status', 'payment_proof_url',
        'start_date', 'end_date', 'created_at', 'updated_at',
    ]
    actions = ['approve_action', 'disable_action']

    @admin.action(description='Approve (activate from today)')
    def approve_action(self, request, queryset):
        repository = SubmissionRepository()
        done = 0
        try:
            for submission in queryset:
                if repository.approve(submission.pk) is not None:
                    done += 1
        except StorageFailure:
            self.message_user(request, "Database error; try again.", level=admin.constants.ERROR)
            return
        self.message_user(request, f"Approved {done} ad(s).", level=admin.constants.SUCCESS)

    @admin.action(description='Disable')
    def disable_action(self, request, queryset):
        repository = SubmissionRepository()
        done = 0
        try:
            for submission in queryset:
                if repository.disable(submission.pk) is not None:
                    done += 1
        except StorageFailure:
            self.message_user(request, "Database error; try again.", level=admin.constants.ERROR)
            return
        self.message_user(request, f"Disabled {done} ad(s).", level=admin.constants.SUCCESS)
