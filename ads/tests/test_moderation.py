"""
DeTransport Ads — Tests for the admin moderation workflow and its authorization policy.
"""

from datetime import date

from django.test import TestCase, SimpleTestCase, override_settings

from ads.exceptions import AccessDenied, MalformedCommandArgument, SubmissionNotFound
from ads.models import AdSubmission
from ads.services.moderation import ModerationWorkflow, SingleAdminPolicy, parse_submission_id
from ads.services.repository import SubmissionRepository
from ads.tests.test_repository import submission_fields

ADMIN_ID = 777


class SingleAdminPolicyTests(SimpleTestCase):

    def test_string_comparison(self):
        policy = SingleAdminPolicy("777")
        self.assertTrue(policy.is_admin(777))
        self.assertTrue(policy.is_admin("777"))
        self.assertFalse(policy.is_admin(778))

    def test_unset_admin_means_nobody(self):
        policy = SingleAdminPolicy("")
        self.assertFalse(policy.is_admin(0))
        self.assertFalse(policy.is_admin(""))

    @override_settings(ADS_ADMIN_TELEGRAM_ID="555")
    def test_defaults_to_settings(self):
        self.assertTrue(SingleAdminPolicy().is_admin(555))


class ParseSubmissionIdTests(SimpleTestCase):

    def test_valid(self):
        self.assertEqual(parse_submission_id("42", "usage_approve"), 42)
        self.assertEqual(parse_submission_id(" 7 ", "usage_approve"), 7)

    def test_invalid(self):
        for raw in ("", None, "abc", "-1", "0", "1.5", "12a", "\u00b2", "\u00b3\u00b2", "\u0663"):
            with self.subTest(raw=raw):
                with self.assertRaises(MalformedCommandArgument) as cm:
                    parse_submission_id(raw, "usage_disable")
                self.assertEqual(cm.exception.usage_key, "usage_disable")


class ModerationWorkflowTests(TestCase):

    def setUp(self):
        self.repo = SubmissionRepository()
        self.workflow = ModerationWorkflow(repository=self.repo, policy=SingleAdminPolicy(ADMIN_ID))
        self.pk = self.repo.create(100, **submission_fields(tariff_days=7))

    def test_non_admin_denied_without_mutation(self):
        with self.assertRaises(AccessDenied):
            self.workflow.approve(100, str(self.pk), today=date(2024, 1, 10))
        with self.assertRaises(AccessDenied):
            self.workflow.disable(100, str(self.pk))
        with self.assertRaises(AccessDenied):
            self.workflow.list_pending(100)
        row = AdSubmission.objects.get(pk=self.pk)
        self.assertEqual(row.moderation_status, AdSubmission.ModerationStatus.PENDING)
        self.assertIsNone(row.start_date)

    def test_authorization_checked_before_argument(self):
        with self.assertRaises(AccessDenied):
            self.workflow.approve(100, "abc")

    def test_malformed_argument(self):
        with self.assertRaises(MalformedCommandArgument) as cm:
            self.workflow.approve(ADMIN_ID, "abc")
        self.assertEqual(cm.exception.usage_key, "usage_approve")

    def test_unknown_id(self):
        with self.assertRaises(SubmissionNotFound) as cm:
            self.workflow.disable(ADMIN_ID, "9999")
        self.assertEqual(cm.exception.submission_id, 9999)

    def test_list_pending(self):
        other = self.repo.create(100, **submission_fields(title="Second"))
        self.repo.disable(self.pk)
        self.assertEqual([s.pk for s in self.workflow.list_pending(ADMIN_ID)], [other])

    def test_approve(self):
        row = self.workflow.approve(ADMIN_ID, str(self.pk), today=date(2024, 1, 10))
        self.assertEqual(row.start_date, date(2024, 1, 10))
        self.assertEqual(row.end_date, date(2024, 1, 17))
        self.assertEqual(row.payment_status, AdSubmission.PaymentStatus.PAID)

    def test_disable(self):
        row = self.workflow.disable(ADMIN_ID, str(self.pk))
        self.assertEqual(row.moderation_status, AdSubmission.ModerationStatus.DISABLED)
