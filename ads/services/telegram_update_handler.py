"""
DeTransport Ads — Process one Telegram update (shared by webhook and polling worker).
Parses the update, runs the conversation engine and sends the reply.
Inline callbacks edit the message that carried the button; when the edit fails we
send the reply once as a new message. Notifications are delivered best-effort after
the reply and never affect it.
"""

import logging

from django.apps import apps
from django.conf import settings

from ads.i18n import language_from_code
from ads.services import telegram_client
from ads.services.conversation import ConversationEngine, MediaReference

logger = logging.getLogger(__name__)


def get_engine() -> ConversationEngine:
    """Engine bound to the process-wide session store of the ads app."""
    return ConversationEngine(apps.get_app_config("ads").session_store)


def _pick_media(message: dict) -> MediaReference | None:
    """Largest photo size, else a document, else None."""
    photos = message.get("photo") or []
    if photos:
        largest = max(
            photos,
            key=lambda p: (p.get("file_size") or 0, (p.get("width") or 0) * (p.get("height") or 0)),
        )
        if largest.get("file_id"):
            return MediaReference(file_id=largest["file_id"], kind="photo")
    document = message.get("document") or {}
    if document.get("file_id"):
        return MediaReference(file_id=document["file_id"], kind="document")
    return None


def parse_update(body: dict) -> dict | None:
    """
    Returns dict with user_id, chat_id, text, callback_data, message_id,
    callback_query_id, media, lang. None if there is nothing to process.
    """
    message = body.get("message")
    if message:
        from_user = message.get("from") or {}
        chat_id = (message.get("chat") or {}).get("id")
        media = _pick_media(message)
        text = message.get("text")
        return {
            "user_id": from_user.get("id"),
            "chat_id": chat_id,
            "text": text if text is not None else None,
            "callback_data": None,
            "message_id": message.get("message_id"),
            "callback_query_id": None,
            "media": media,
            "lang": language_from_code(from_user.get("language_code")),
        }

    callback = body.get("callback_query")
    if callback:
        from_user = callback.get("from") or {}
        msg = callback.get("message") or {}
        chat_id = (msg.get("chat") or {}).get("id") or from_user.get("id")
        return {
            "user_id": from_user.get("id"),
            "chat_id": chat_id,
            "text": None,
            "callback_data": callback.get("data") or "",
            "message_id": msg.get("message_id"),
            "callback_query_id": callback.get("id"),
            "media": None,
            "lang": language_from_code(from_user.get("language_code")),
        }

    return None


def _send_notifications(token: str, notifications) -> None:
    for chat_id, text in notifications or ():
        try:
            ok, _ = telegram_client.send_message(token, chat_id, text)
            if not ok:
                logger.warning("notification not delivered chat_id=%s", chat_id)
        except Exception as e:
            logger.exception("notification chat_id=%s: %s", chat_id, e)


def process_update(update: dict, engine: ConversationEngine | None = None, token: str | None = None) -> None:
    """
    Process a single Telegram update: at most one outgoing message (or edit) per update,
    followed by any notifications. Never raises.
    """
    token = token or settings.TELEGRAM_BOT_TOKEN
    update_id = update.get("update_id")
    parsed = parse_update(update)
    if parsed is None or not parsed["user_id"] or parsed["chat_id"] is None:
        logger.debug("process_update update_id=%s: nothing to process", update_id)
        return

    user_id = parsed["user_id"]
    chat_id = parsed["chat_id"]
    callback_query_id = parsed["callback_query_id"]
    engine = engine or get_engine()

    try:
        response = engine.process_update(
            user_id,
            text=parsed["text"],
            callback_data=parsed["callback_data"],
            message_id=parsed["message_id"],
            media=parsed["media"],
            lang=parsed["lang"],
        )
    except Exception as e:
        logger.exception("process_update conversation user_id=%s update_id=%s: %s", user_id, update_id, e)
        if callback_query_id:
            telegram_client.answer_callback_query(token, callback_query_id)
        return

    if callback_query_id:
        telegram_client.answer_callback_query(token, callback_query_id)

    text_out = response.get("text")
    reply_markup = response.get("reply_markup")
    edit_previous = response.get("edit_previous") and response.get("message_id") is not None

    # Single response rule: either edit or send, never both for the same update.
    if text_out:
        try:
            sent_message_id = None
            if edit_previous:
                if telegram_client.edit_message_text(
                    token, chat_id, response["message_id"], text_out, reply_markup=reply_markup,
                ):
                    sent_message_id = response["message_id"]
                else:
                    logger.warning(
                        "process_update edit failed (message not editable), sending new message once chat_id=%s",
                        chat_id,
                    )
                    _, sent_message_id = telegram_client.send_message(token, chat_id, text_out, reply_markup=reply_markup)
            else:
                _, sent_message_id = telegram_client.send_message(token, chat_id, text_out, reply_markup=reply_markup)
            logger.info(
                "process_update out update_id=%s user_id=%s chat_id=%s sent_msg_id=%s edit=%s",
                update_id, user_id, chat_id, sent_message_id, bool(edit_previous),
            )
            if sent_message_id is None:
                logger.warning("process_update send failed chat_id=%s", chat_id)
        except Exception as e:
            logger.exception("process_update send_message chat_id=%s: %s", chat_id, e)

    _send_notifications(token, response.get("notifications"))
