"""
DeTransport Ads — Tests for conversation engine (state machine, i18n, submit and payment flow).
"""

from datetime import date
from unittest.mock import MagicMock, patch

from django.test import SimpleTestCase, TestCase, override_settings

from ads.conf import Plan
from ads.exceptions import MediaUnavailable, StorageFailure
from ads.i18n import get_message, language_from_code
from ads.models import AdSubmission
from ads.services.conversation import ConversationEngine, MediaReference
from ads.services.repository import SubmissionRepository
from ads.services.sessions import (
    AwaitingLink,
    AwaitingMedia,
    AwaitingPaymentProof,
    AwaitingTariffChoice,
    AwaitingTitle,
    SessionStore,
    Step,
)

USER_ID = 12345
ADMIN_ID = 777


def fake_resolver(media):
    return f"https://api.telegram.org/file/botTEST/{media.kind}s/{media.file_id}.jpg"


class GetMessageTests(SimpleTestCase):
    """Never hardcode text; always use get_message."""

    def test_get_message_uk_en(self):
        self.assertEqual(get_message("no_session", "uk"), "Натисніть /start")
        self.assertEqual(get_message("no_session", "en"), "Press /start")

    def test_get_message_fallback(self):
        self.assertEqual(get_message("no_session", None), "Натисніть /start")
        self.assertEqual(get_message("no_session", "de"), "Натисніть /start")
        self.assertEqual(get_message("unknown_key", "en"), "unknown_key")

    def test_language_from_code(self):
        self.assertEqual(language_from_code("en"), "en")
        self.assertEqual(language_from_code("en-GB"), "en")
        self.assertEqual(language_from_code("uk"), "uk")
        self.assertEqual(language_from_code(None), "uk")


@override_settings(ADS_ADMIN_TELEGRAM_ID=str(ADMIN_ID), ADS_PAYMENT_CARD="5375 4111 2233 4455", ADS_PAYMENT_IBAN="UA12")
class ConversationEngineTests(TestCase):
    """AWAITING_TARIFF_CHOICE -> text steps -> AWAITING_MEDIA -> AWAITING_PAYMENT_PROOF -> done."""

    def setUp(self):
        self.store = SessionStore()
        self.repo = SubmissionRepository()
        self.engine = ConversationEngine(self.store, repository=self.repo, resolve_media_url=fake_resolver)

    def send(self, text=None, callback_data=None, media=None, user_id=USER_ID, message_id=None, lang="en"):
        return self.engine.process_update(
            user_id, text=text, callback_data=callback_data, media=media, message_id=message_id, lang=lang,
        )

    def fill_until_media(self):
        self.send(callback_data="MENU_CREATE")
        self.send(callback_data="TARIFF_7")
        for text in ("Sale", "20% off", "https://shop.example/x", "@shop", "Jane Doe"):
            self.send(text=text)

    def test_start_shows_tariffs_and_menu(self):
        self.store.set(USER_ID, AwaitingTitle(plan=Plan(days=1, price=120)))
        out = self.send(text="/start")
        self.assertIsNone(self.store.get(USER_ID))
        self.assertIn("620", out["text"])
        buttons = [row[0]["callback_data"] for row in out["reply_markup"]["inline_keyboard"]]
        self.assertEqual(buttons, ["MENU_CREATE", "MENU_LATER"])

    def test_menu_create_shows_plans_and_edits_message(self):
        out = self.send(callback_data="MENU_CREATE", message_id=55)
        self.assertEqual(self.store.get(USER_ID), AwaitingTariffChoice())
        plans = [row[0]["callback_data"] for row in out["reply_markup"]["inline_keyboard"]]
        self.assertEqual(plans, ["TARIFF_1", "TARIFF_7", "TARIFF_14", "TARIFF_30"])
        self.assertTrue(out["edit_previous"])
        self.assertEqual(out["message_id"], 55)

    def test_menu_later_clears_session(self):
        self.store.set(USER_ID, AwaitingTariffChoice())
        out = self.send(callback_data="MENU_LATER")
        self.assertIsNone(self.store.get(USER_ID))
        self.assertIn("/start", out["text"])

    def test_tariff_choice_records_plan(self):
        self.send(callback_data="MENU_CREATE")
        out = self.send(callback_data="TARIFF_14")
        self.assertEqual(self.store.get(USER_ID), AwaitingTitle(plan=Plan(days=14, price=1100)))
        self.assertIn("1100", out["text"])

    def test_tariff_as_text_accepted(self):
        self.send(callback_data="MENU_CREATE")
        self.send(text="TARIFF_30")
        self.assertEqual(self.store.get(USER_ID), AwaitingTitle(plan=Plan(days=30, price=2200)))

    def test_unknown_tariff_ignored(self):
        self.send(callback_data="MENU_CREATE")
        out = self.send(callback_data="TARIFF_99")
        self.assertEqual(out, {})
        self.assertEqual(self.store.get(USER_ID), AwaitingTariffChoice())

    def test_free_text_at_tariff_step_reshows_plans(self):
        self.send(callback_data="MENU_CREATE")
        out = self.send(text="one week please")
        self.assertEqual(self.store.get(USER_ID), AwaitingTariffChoice())
        self.assertIn("inline_keyboard", out["reply_markup"])

    def test_tariff_callback_outside_tariff_step_ignored(self):
        self.send(callback_data="MENU_CREATE")
        self.send(callback_data="TARIFF_7")
        out = self.send(callback_data="TARIFF_30")
        self.assertEqual(out, {})
        self.assertEqual(self.store.get(USER_ID), AwaitingTitle(plan=Plan(days=7, price=620)))

    def test_no_session_hint(self):
        self.assertEqual(self.send(text="hello")["text"], get_message("no_session", "en"))
        out = self.send(media=MediaReference(file_id="f1"))
        self.assertEqual(out["text"], get_message("no_session", "en"))
        self.assertIsNone(self.store.get(USER_ID))

    def test_title_too_long_reprompts(self):
        self.send(callback_data="MENU_CREATE")
        self.send(callback_data="TARIFF_7")
        out = self.send(text="a" * 61)
        self.assertIn(get_message("title_too_long", "en").format(limit=60), out["text"])
        self.assertEqual(self.store.get(USER_ID).step, Step.AWAITING_TITLE)
        self.send(text="a" * 60)
        self.assertEqual(self.store.get(USER_ID).step, Step.AWAITING_DESCRIPTION)

    def test_each_text_field_rejects_limit_plus_one(self):
        self.send(callback_data="MENU_CREATE")
        self.send(callback_data="TARIFF_7")
        self.send(text="Sale")
        steps = (
            ("description", 200, Step.AWAITING_DESCRIPTION, "20% off"),
            ("link_url", 2048, Step.AWAITING_LINK, "https://shop.example/x"),
            ("contact_info", 120, Step.AWAITING_CONTACT, "@shop"),
            ("customer_name", 60, Step.AWAITING_CUSTOMER_NAME, "Jane Doe"),
        )
        for field, limit, step, valid in steps:
            with self.subTest(field=field):
                too_long = "https://shop.example/" + "x" * limit if field == "link_url" else "a" * (limit + 1)
                out = self.send(text=too_long)
                self.assertIn(get_message(f"{field}_too_long", "en").format(limit=limit), out["text"])
                self.assertEqual(self.store.get(USER_ID).step, step)
                self.send(text=valid)
        self.assertEqual(self.store.get(USER_ID).step, Step.AWAITING_MEDIA)

    def test_empty_text_rejected(self):
        self.send(callback_data="MENU_CREATE")
        self.send(callback_data="TARIFF_7")
        out = self.send(text="   ")
        self.assertIn(get_message("empty_text", "en"), out["text"])
        self.assertEqual(self.store.get(USER_ID).step, Step.AWAITING_TITLE)

    def test_invalid_link_reprompts(self):
        self.send(callback_data="MENU_CREATE")
        self.send(callback_data="TARIFF_7")
        self.send(text="Sale")
        self.send(text="20% off")
        before = self.store.get(USER_ID)
        out = self.send(text="shop.example")
        self.assertIn(get_message("invalid_link", "en"), out["text"])
        self.assertIs(self.store.get(USER_ID), before)
        self.send(text="  https://shop.example/x  ")
        self.assertEqual(self.store.get(USER_ID).link_url, "https://shop.example/x")

    def test_media_during_text_step_reprompts(self):
        self.send(callback_data="MENU_CREATE")
        self.send(callback_data="TARIFF_7")
        out = self.send(media=MediaReference(file_id="f1"))
        self.assertIn(get_message("text_expected", "en"), out["text"])
        self.assertEqual(self.store.get(USER_ID).step, Step.AWAITING_TITLE)

    def test_text_during_media_step_reprompts(self):
        self.fill_until_media()
        out = self.send(text="here it is")
        self.assertIn(get_message("media_expected", "en"), out["text"])
        self.assertEqual(self.store.get(USER_ID).step, Step.AWAITING_MEDIA)
        self.assertFalse(AdSubmission.objects.exists())

    def test_end_to_end_submission_and_receipt(self):
        self.send(text="/start")
        self.send(callback_data="MENU_CREATE")
        self.send(callback_data="TARIFF_7")
        self.send(text="Sale")
        self.send(text="20% off")
        self.send(text="https://shop.example/x")
        self.send(text="@shop")
        self.send(text="Jane Doe")
        self.assertEqual(
            self.store.get(USER_ID),
            AwaitingMedia(
                plan=Plan(days=7, price=620),
                title="Sale",
                description="20% off",
                link_url="https://shop.example/x",
                contact_info="@shop",
                customer_name="Jane Doe",
            ),
        )

        out = self.send(media=MediaReference(file_id="banner", kind="photo"))
        row = AdSubmission.objects.get()
        self.assertEqual(self.store.get(USER_ID), AwaitingPaymentProof(submission_id=row.pk))
        self.assertEqual(row.user_id, USER_ID)
        self.assertEqual(row.tariff_days, 7)
        self.assertEqual(row.price_amount, 620)
        self.assertEqual(row.title, "Sale")
        self.assertEqual(row.customer_name, "Jane Doe")
        self.assertEqual(row.media_url, "https://api.telegram.org/file/botTEST/photos/banner.jpg")
        self.assertEqual(row.moderation_status, AdSubmission.ModerationStatus.PENDING)
        self.assertEqual(row.payment_status, AdSubmission.PaymentStatus.UNPAID)
        self.assertIn(f"#{row.pk}", out["text"])
        self.assertIn("620", out["text"])
        self.assertIn("5375 4111 2233 4455", out["text"])
        self.assertEqual(out["notifications"][0][0], ADMIN_ID)

        out = self.send(media=MediaReference(file_id="receipt", kind="document"))
        row.refresh_from_db()
        self.assertIsNone(self.store.get(USER_ID))
        self.assertEqual(row.payment_status, AdSubmission.PaymentStatus.WAITING_REVIEW)
        self.assertEqual(row.payment_proof_url, "https://api.telegram.org/file/botTEST/documents/receipt.jpg")
        self.assertEqual(out["text"], get_message("payment_proof_received", "en"))
        self.assertEqual(out["notifications"][0][0], ADMIN_ID)

    def test_text_at_payment_step_reprompts(self):
        self.store.set(USER_ID, AwaitingPaymentProof(submission_id=1))
        out = self.send(text="paid!")
        self.assertIn(get_message("ask_payment_proof", "en"), out["text"])
        self.assertEqual(self.store.get(USER_ID), AwaitingPaymentProof(submission_id=1))

    def test_storage_failure_keeps_session(self):
        self.fill_until_media()
        before = self.store.get(USER_ID)
        with patch.object(self.repo, "create", side_effect=StorageFailure("db down")):
            out = self.send(media=MediaReference(file_id="banner"))
        self.assertEqual(out["text"], get_message("error_generic", "en"))
        self.assertIs(self.store.get(USER_ID), before)
        self.assertFalse(AdSubmission.objects.exists())

    def test_media_unavailable_keeps_session(self):
        self.fill_until_media()
        self.engine.resolve_media_url = MagicMock(side_effect=MediaUnavailable("gone"))
        out = self.send(media=MediaReference(file_id="banner"))
        self.assertEqual(out["text"], get_message("error_generic", "en"))
        self.assertEqual(self.store.get(USER_ID).step, Step.AWAITING_MEDIA)

    def test_cancel_always_succeeds(self):
        self.assertEqual(self.send(text="/cancel")["text"], get_message("cancelled", "en"))
        self.store.set(USER_ID, AwaitingLink(plan=Plan(days=1, price=120), title="t", description="d"))
        self.send(text="/cancel")
        self.assertIsNone(self.store.get(USER_ID))

    def test_myid(self):
        out = self.send(text="/myid")
        self.assertEqual(out["text"], get_message("my_id", "en").format(user_id=USER_ID))

    def test_command_with_bot_username(self):
        out = self.send(text="/myid@DeTransportBot")
        self.assertIn(str(USER_ID), out["text"])

    def test_sessions_are_per_user(self):
        self.send(callback_data="MENU_CREATE", user_id=1)
        self.send(callback_data="TARIFF_7", user_id=1)
        self.send(callback_data="MENU_CREATE", user_id=2)
        self.assertEqual(self.store.get(1).step, Step.AWAITING_TITLE)
        self.assertEqual(self.store.get(2).step, Step.AWAITING_TARIFF_CHOICE)


@override_settings(ADS_ADMIN_TELEGRAM_ID=str(ADMIN_ID))
class AdminCommandTests(TestCase):
    """/list_pending, /approve <id>, /disable <id> through the moderation workflow."""

    def setUp(self):
        self.store = SessionStore()
        self.repo = SubmissionRepository()
        self.engine = ConversationEngine(self.store, repository=self.repo, resolve_media_url=fake_resolver)
        self.pk = self.repo.create(
            USER_ID,
            tariff_days=7,
            price_amount=620,
            title="Sale",
            description="20% off",
            link_url="https://shop.example/x",
            contact_info="@shop",
            customer_name="Jane Doe",
        )

    def admin(self, text, user_id=ADMIN_ID):
        return self.engine.process_update(user_id, text=text, lang="en")

    def test_non_admin_denied(self):
        for command in ("/list_pending", f"/approve {self.pk}", f"/disable {self.pk}", "/approve abc"):
            with self.subTest(command=command):
                out = self.admin(command, user_id=USER_ID)
                self.assertEqual(out["text"], get_message("access_denied", "en"))
        row = AdSubmission.objects.get(pk=self.pk)
        self.assertEqual(row.moderation_status, AdSubmission.ModerationStatus.PENDING)

    def test_list_pending(self):
        out = self.admin("/list_pending")
        self.assertIn(f"#{self.pk}", out["text"])
        self.assertIn("Jane Doe", out["text"])
        self.assertIn("Unpaid", out["text"])

    def test_list_pending_empty(self):
        self.repo.disable(self.pk)
        self.assertEqual(self.admin("/list_pending")["text"], get_message("pending_empty", "en"))

    def test_approve_usage_and_not_found(self):
        self.assertEqual(self.admin("/approve")["text"], get_message("usage_approve", "en"))
        self.assertEqual(self.admin("/approve x1")["text"], get_message("usage_approve", "en"))
        self.assertEqual(self.admin("/disable -3")["text"], get_message("usage_disable", "en"))
        self.assertEqual(self.admin("/approve \u00b2")["text"], get_message("usage_approve", "en"))
        self.assertEqual(self.admin("/disable \u00b3")["text"], get_message("usage_disable", "en"))
        out = self.admin("/approve 9999")
        self.assertEqual(out["text"], get_message("submission_not_found", "en").format(id=9999))

    @patch("ads.services.repository.timezone.localdate", return_value=date(2024, 1, 10))
    def test_approve_activates_and_notifies_owner(self, _mock_today):
        out = self.admin(f"/approve {self.pk}")
        row = AdSubmission.objects.get(pk=self.pk)
        self.assertEqual(row.moderation_status, AdSubmission.ModerationStatus.ACTIVE)
        self.assertEqual(row.start_date, date(2024, 1, 10))
        self.assertEqual(row.end_date, date(2024, 1, 17))
        self.assertIn("2024-01-17", out["text"])
        self.assertEqual(out["notifications"][0][0], USER_ID)

    def test_disable(self):
        out = self.admin(f"/disable {self.pk}")
        self.assertEqual(out["text"], get_message("disabled", "en").format(id=self.pk))
        row = AdSubmission.objects.get(pk=self.pk)
        self.assertEqual(row.moderation_status, AdSubmission.ModerationStatus.DISABLED)

    def test_admin_commands_leave_admin_session_alone(self):
        self.store.set(ADMIN_ID, AwaitingTariffChoice())
        self.admin("/list_pending")
        self.assertEqual(self.store.get(ADMIN_ID), AwaitingTariffChoice())
