"""
DeTransport Ads — submission dialogue state machine (UK/EN).
All logic here; the update handler only parses the update and calls this.
Handles /start, /cancel, /myid, admin commands, menu and tariff buttons, the text
steps, the banner step and the payment receipt step.

Returns dict with text, reply_markup and optionally edit_previous, message_id and
notifications (list of (chat_id, text) to deliver best-effort after the reply).
"""

import logging
from dataclasses import dataclass, fields

from django.conf import settings

from ads.conf import get_field_limit, get_payment_details, get_plan, get_tariffs
from ads.exceptions import (
    AccessDenied,
    MalformedCommandArgument,
    MediaUnavailable,
    StorageFailure,
    SubmissionNotFound,
    ValidationFailure,
)
from ads.i18n import DEFAULT_LANGUAGE, get_message
from ads.services import telegram_client
from ads.services.moderation import ModerationWorkflow
from ads.services.repository import SubmissionRepository
from ads.services.sessions import (
    AwaitingContact,
    AwaitingCustomerName,
    AwaitingDescription,
    AwaitingLink,
    AwaitingMedia,
    AwaitingPaymentProof,
    AwaitingTariffChoice,
    AwaitingTitle,
    SessionStore,
    Step,
)
from ads.validators import clean_step_input

logger = logging.getLogger(__name__)

MENU_CREATE = "MENU_CREATE"
MENU_LATER = "MENU_LATER"
TARIFF_PREFIX = "TARIFF_"

# Telegram message length limit
MAX_MESSAGE_LENGTH = 4096

# step -> (field collected at this step, variant for the next step)
TEXT_STEPS = {
    Step.AWAITING_TITLE: ("title", AwaitingDescription),
    Step.AWAITING_DESCRIPTION: ("description", AwaitingLink),
    Step.AWAITING_LINK: ("link_url", AwaitingContact),
    Step.AWAITING_CONTACT: ("contact_info", AwaitingCustomerName),
    Step.AWAITING_CUSTOMER_NAME: ("customer_name", AwaitingMedia),
}

# step -> (prompt key, field whose limit is shown in the prompt)
PROMPTS = {
    Step.AWAITING_TITLE: ("ask_title", "title"),
    Step.AWAITING_DESCRIPTION: ("ask_description", "description"),
    Step.AWAITING_LINK: ("ask_link", None),
    Step.AWAITING_CONTACT: ("ask_contact", "contact_info"),
    Step.AWAITING_CUSTOMER_NAME: ("ask_customer_name", "customer_name"),
    Step.AWAITING_MEDIA: ("ask_media", None),
    Step.AWAITING_PAYMENT_PROOF: ("ask_payment_proof", None),
}


@dataclass(frozen=True)
class MediaReference:
    """One inbound photo (largest size) or document, by Telegram file_id."""

    file_id: str
    kind: str = "photo"


def telegram_media_resolver(media: MediaReference) -> str:
    """Default resolver: Telegram file host URL for the configured bot token."""
    return telegram_client.resolve_media_url(settings.TELEGRAM_BOT_TOKEN, media.file_id)


def _admin_chat_id():
    admin_id = str(getattr(settings, "ADS_ADMIN_TELEGRAM_ID", "") or "").strip()
    return int(admin_id) if admin_id.lstrip("-").isdigit() else None


class ConversationEngine:
    """
    State machine for the submission dialogue.
    Session reads and writes for one user run inside store.locked(user_id); a session
    is only replaced after every side effect of the step has succeeded.
    """

    def __init__(
        self,
        store: SessionStore,
        repository: SubmissionRepository | None = None,
        moderation: ModerationWorkflow | None = None,
        resolve_media_url=None,
    ):
        self.store = store
        self.repository = repository or SubmissionRepository()
        self.moderation = moderation or ModerationWorkflow(repository=self.repository)
        self.resolve_media_url = resolve_media_url or telegram_media_resolver

    def process_update(
        self,
        user_id: int,
        text: str | None = None,
        callback_data: str | None = None,
        message_id: int | None = None,
        media: MediaReference | None = None,
        lang: str | None = None,
    ) -> dict:
        """
        Process one inbound message or button press. Returns the reply dict; an
        empty "text" means nothing should be sent.
        """
        lang = lang or DEFAULT_LANGUAGE
        # When we have a callback, we prefer to edit the same message
        edit_previous = callback_data is not None and message_id is not None
        with self.store.locked(user_id):
            try:
                return self._dispatch(user_id, text, callback_data, media, lang, edit_previous, message_id)
            except (StorageFailure, MediaUnavailable) as e:
                logger.exception("conversation user_id=%s failed: %s", user_id, e)
                return self._reply(get_message("error_generic", lang))

    def _dispatch(self, user_id, text, callback_data, media, lang, edit_previous, message_id) -> dict:
        if text is not None and text.strip().startswith("/"):
            response = self._handle_command(user_id, text.strip(), lang)
            if response is not None:
                return response

        if callback_data is not None:
            return self._handle_callback(user_id, callback_data.strip(), lang, edit_previous, message_id)

        session = self.store.get(user_id)
        if session is None:
            return self._reply(get_message("no_session", lang))

        if session.step == Step.AWAITING_TARIFF_CHOICE:
            plan = get_plan(text) if text else None
            if plan is None:
                return self._reply_choose_tariff(lang)
            return self._select_plan(user_id, plan, lang)

        if session.step in TEXT_STEPS:
            if media is not None or text is None:
                return self._reply_prompt(session.step, lang, prefix_key="text_expected")
            return self._handle_text_step(user_id, session, text, lang)

        if session.step == Step.AWAITING_MEDIA:
            if media is None:
                return self._reply_prompt(session.step, lang, prefix_key="media_expected")
            return self._handle_banner(user_id, session, media, lang)

        if session.step == Step.AWAITING_PAYMENT_PROOF:
            if media is None:
                return self._reply_prompt(session.step, lang, prefix_key="media_expected")
            return self._handle_payment_proof(user_id, session, media, lang)

        logger.warning("conversation user_id=%s unknown step %s", user_id, session.step)
        return self._reply(get_message("no_session", lang))

    # Commands

    def _handle_command(self, user_id: int, text: str, lang: str) -> dict | None:
        """Handle a slash command. Returns None for unknown commands (treated as plain text)."""
        parts = text.split(None, 1)
        command = parts[0].split("@", 1)[0].lower()
        argument = parts[1].strip() if len(parts) > 1 else ""

        if command == "/start":
            self.store.delete(user_id)
            logger.info("conversation user_id=%s /start", user_id)
            return self._reply_start(lang)
        if command == "/cancel":
            self.store.delete(user_id)
            return self._reply(get_message("cancelled", lang))
        if command == "/myid":
            return self._reply(get_message("my_id", lang).format(user_id=user_id))
        if command == "/list_pending":
            return self._admin_list_pending(user_id, lang)
        if command == "/approve":
            return self._admin_approve(user_id, argument, lang)
        if command == "/disable":
            return self._admin_disable(user_id, argument, lang)
        return None

    def _admin_list_pending(self, user_id: int, lang: str) -> dict:
        try:
            pending = self.moderation.list_pending(user_id)
        except AccessDenied:
            return self._reply(get_message("access_denied", lang))
        if not pending:
            return self._reply(get_message("pending_empty", lang))
        item = get_message("pending_item", lang)
        lines = [
            item.format(
                id=s.pk,
                customer_name=s.customer_name,
                title=s.title,
                tariff_days=s.tariff_days,
                price_amount=s.price_amount,
                payment_status=s.get_payment_status_display(),
            )
            for s in pending
        ]
        text = "\n\n".join(lines)
        if len(text) > MAX_MESSAGE_LENGTH:
            text = text[:MAX_MESSAGE_LENGTH - 1] + "…"
        return self._reply(text)

    def _admin_approve(self, user_id: int, argument: str, lang: str) -> dict:
        try:
            submission = self.moderation.approve(user_id, argument)
        except AccessDenied:
            return self._reply(get_message("access_denied", lang))
        except MalformedCommandArgument as e:
            return self._reply(get_message(e.usage_key, lang))
        except SubmissionNotFound as e:
            return self._reply(get_message("submission_not_found", lang).format(id=e.submission_id))
        dates = {
            "id": submission.pk,
            "start_date": submission.start_date.isoformat(),
            "end_date": submission.end_date.isoformat(),
        }
        out = self._reply(get_message("approved", lang).format(**dates))
        out["notifications"] = [
            (submission.user_id, get_message("notify_user_approved", DEFAULT_LANGUAGE).format(**dates)),
        ]
        return out

    def _admin_disable(self, user_id: int, argument: str, lang: str) -> dict:
        try:
            submission = self.moderation.disable(user_id, argument)
        except AccessDenied:
            return self._reply(get_message("access_denied", lang))
        except MalformedCommandArgument as e:
            return self._reply(get_message(e.usage_key, lang))
        except SubmissionNotFound as e:
            return self._reply(get_message("submission_not_found", lang).format(id=e.submission_id))
        return self._reply(get_message("disabled", lang).format(id=submission.pk))

    # Buttons

    def _handle_callback(self, user_id: int, data: str, lang: str, edit_previous: bool, message_id) -> dict:
        if data == MENU_CREATE:
            self.store.set(user_id, AwaitingTariffChoice())
            logger.info("conversation user_id=%s → %s", user_id, Step.AWAITING_TARIFF_CHOICE.value)
            return self._reply_choose_tariff(lang, edit_previous, message_id)
        if data == MENU_LATER:
            self.store.delete(user_id)
            return self._reply(get_message("later", lang), edit_previous=edit_previous, message_id=message_id)
        if data.startswith(TARIFF_PREFIX):
            session = self.store.get(user_id)
            if session is None:
                return self._reply(get_message("no_session", lang))
            plan = get_plan(data)
            if session.step != Step.AWAITING_TARIFF_CHOICE or plan is None:
                logger.debug("conversation user_id=%s ignored callback %s", user_id, data)
                return {}
            return self._select_plan(user_id, plan, lang, edit_previous, message_id)
        logger.debug("conversation user_id=%s unknown callback %s", user_id, data)
        return {}

    # Steps

    def _select_plan(self, user_id: int, plan, lang: str, edit_previous: bool = False, message_id=None) -> dict:
        self.store.set(user_id, AwaitingTitle(plan=plan))
        logger.info("conversation user_id=%s plan=%s → %s", user_id, plan.identifier, Step.AWAITING_TITLE.value)
        chosen = get_message("tariff_chosen", lang).format(days=plan.days, price=plan.price)
        return self._reply(
            f"{chosen}\n\n{self._prompt_text(Step.AWAITING_TITLE, lang)}",
            edit_previous=edit_previous,
            message_id=message_id,
        )

    def _handle_text_step(self, user_id: int, session, text: str, lang: str) -> dict:
        field, next_variant = TEXT_STEPS[session.step]
        try:
            value = clean_step_input(field, text)
        except ValidationFailure as e:
            error = get_message(e.message_key, lang).format(**e.params)
            return self._reply(f"{error}\n\n{self._prompt_text(session.step, lang)}")
        collected = {f.name: getattr(session, f.name) for f in fields(session)}
        collected[field] = value
        next_session = next_variant(**collected)
        self.store.set(user_id, next_session)
        logger.info("conversation user_id=%s %s → %s", user_id, session.step.value, next_session.step.value)
        return self._reply(self._prompt_text(next_session.step, lang))

    def _handle_banner(self, user_id: int, session: AwaitingMedia, media: MediaReference, lang: str) -> dict:
        media_url = self.resolve_media_url(media)
        submission_id = self.repository.create(user_id, media_url=media_url, **session.submission_fields())
        self.store.set(user_id, AwaitingPaymentProof(submission_id=submission_id))
        logger.info("conversation user_id=%s submission=%s → %s", user_id, submission_id, Step.AWAITING_PAYMENT_PROOF.value)
        payment = get_payment_details()
        out = self._reply(
            get_message("submission_created", lang).format(
                id=submission_id,
                price=session.plan.price,
                card=payment["card"],
                iban=payment["iban"],
            )
        )
        admin_chat_id = _admin_chat_id()
        if admin_chat_id:
            out["notifications"] = [(
                admin_chat_id,
                get_message("notify_admin_new_submission", DEFAULT_LANGUAGE).format(
                    id=submission_id, customer_name=session.customer_name, title=session.title,
                ),
            )]
        return out

    def _handle_payment_proof(self, user_id: int, session: AwaitingPaymentProof, media: MediaReference, lang: str) -> dict:
        proof_url = self.resolve_media_url(media)
        self.repository.attach_payment_proof(session.submission_id, proof_url)
        self.store.delete(user_id)
        logger.info("conversation user_id=%s submission=%s payment proof received", user_id, session.submission_id)
        out = self._reply(get_message("payment_proof_received", lang))
        admin_chat_id = _admin_chat_id()
        if admin_chat_id:
            out["notifications"] = [(
                admin_chat_id,
                get_message("notify_admin_payment_proof", DEFAULT_LANGUAGE).format(
                    id=session.submission_id, url=proof_url,
                ),
            )]
        return out

    # Replies

    def _reply(self, text: str, reply_markup: dict | None = None, edit_previous: bool = False, message_id=None) -> dict:
        out = {"text": text, "reply_markup": reply_markup}
        if edit_previous and message_id is not None:
            out["edit_previous"] = True
            out["message_id"] = message_id
        return out

    def _prompt_text(self, step: Step, lang: str) -> str:
        key, limit_field = PROMPTS[step]
        limit = get_field_limit(limit_field) if limit_field else None
        return get_message(key, lang).format(limit=limit)

    def _reply_prompt(self, step: Step, lang: str, prefix_key: str) -> dict:
        return self._reply(f"{get_message(prefix_key, lang)}\n\n{self._prompt_text(step, lang)}")

    def _reply_start(self, lang: str) -> dict:
        label = get_message("tariff_label", lang)
        tariffs = "\n".join(label.format(days=p.days, price=p.price) for p in get_tariffs())
        reply_markup = {
            "inline_keyboard": [
                [{"text": get_message("btn_create_ad", lang), "callback_data": MENU_CREATE}],
                [{"text": get_message("btn_later", lang), "callback_data": MENU_LATER}],
            ]
        }
        return self._reply(get_message("start", lang).format(tariffs=tariffs), reply_markup)

    def _reply_choose_tariff(self, lang: str, edit_previous: bool = False, message_id=None) -> dict:
        label = get_message("btn_tariff", lang)
        keyboard = [[{"text": label.format(days=p.days), "callback_data": p.identifier}] for p in get_tariffs()]
        return self._reply(
            get_message("choose_tariff", lang),
            {"inline_keyboard": keyboard},
            edit_previous=edit_previous,
            message_id=message_id,
        )
