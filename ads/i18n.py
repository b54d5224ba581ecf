"""
DeTransport Ads — bilingual (UK/EN) message registry.
Never hardcode text in handlers; always use get_message(key, lang).
"""

DEFAULT_LANGUAGE = "uk"

MESSAGES = {
    "start": {
        "uk": "👋 Вітаємо в DeTransport Ads!\n\n💰 Тарифи:\n{tariffs}",
        "en": "👋 Welcome to DeTransport Ads!\n\n💰 Plans:\n{tariffs}",
    },
    "tariff_label": {
        "uk": "{days} дн. — {price} грн",
        "en": "{days} days — {price} UAH",
    },
    "btn_tariff": {
        "uk": "{days} дн.",
        "en": "{days} days",
    },
    "btn_create_ad": {
        "uk": "📝 Оформити рекламу",
        "en": "📝 Create an ad",
    },
    "btn_later": {
        "uk": "❌ Поки що ні",
        "en": "❌ Not now",
    },
    "later": {
        "uk": "Добре 🙂 Напишіть /start коли будете готові",
        "en": "Okay 🙂 Send /start when you are ready",
    },
    "choose_tariff": {
        "uk": "Оберіть тариф:",
        "en": "Choose a plan:",
    },
    "tariff_chosen": {
        "uk": "Обрано {days} дн. ({price} грн)",
        "en": "Selected {days} days ({price} UAH)",
    },
    "ask_title": {
        "uk": "Напишіть заголовок (до {limit} символів)",
        "en": "Send the title (up to {limit} characters)",
    },
    "ask_description": {
        "uk": "Напишіть опис (до {limit} символів)",
        "en": "Send the description (up to {limit} characters)",
    },
    "ask_link": {
        "uk": "Надішліть посилання (https://...)",
        "en": "Send the link (https://...)",
    },
    "ask_contact": {
        "uk": "Контактні дані (до {limit} символів)",
        "en": "Contact details (up to {limit} characters)",
    },
    "ask_customer_name": {
        "uk": "Імʼя та прізвище (до {limit} символів)",
        "en": "First and last name (up to {limit} characters)",
    },
    "ask_media": {
        "uk": "Надішліть банер (зображення або файл)",
        "en": "Send the banner (image or file)",
    },
    "empty_text": {
        "uk": "Порожнє повідомлення. Спробуйте ще раз.",
        "en": "Empty message. Please try again.",
    },
    "title_too_long": {
        "uk": "Заголовок задовгий (максимум {limit} символів).",
        "en": "Title is too long (max {limit} characters).",
    },
    "description_too_long": {
        "uk": "Опис задовгий (максимум {limit} символів).",
        "en": "Description is too long (max {limit} characters).",
    },
    "contact_info_too_long": {
        "uk": "Контакти задовгі (максимум {limit} символів).",
        "en": "Contact details are too long (max {limit} characters).",
    },
    "customer_name_too_long": {
        "uk": "Імʼя задовге (максимум {limit} символів).",
        "en": "Name is too long (max {limit} characters).",
    },
    "link_url_too_long": {
        "uk": "Посилання задовге (максимум {limit} символів).",
        "en": "Link is too long (max {limit} characters).",
    },
    "invalid_link": {
        "uk": "Некоректне посилання. Приклад: https://example.com",
        "en": "Invalid link. Example: https://example.com",
    },
    "media_expected": {
        "uk": "Очікується зображення або файл.",
        "en": "An image or a file is expected.",
    },
    "text_expected": {
        "uk": "Очікується текст.",
        "en": "Text is expected.",
    },
    "submission_created": {
        "uk": (
            "✅ Заявка #{id} створена.\n\n"
            "До сплати: {price} грн\n"
            "Картка: {card}\n"
            "IBAN: {iban}\n\n"
            "Після оплати надішліть скріншот або файл квитанції."
        ),
        "en": (
            "✅ Request #{id} created.\n\n"
            "Amount due: {price} UAH\n"
            "Card: {card}\n"
            "IBAN: {iban}\n\n"
            "After paying, send a screenshot or file of the receipt."
        ),
    },
    "ask_payment_proof": {
        "uk": "Надішліть скріншот або файл квитанції про оплату.",
        "en": "Send a screenshot or file of the payment receipt.",
    },
    "payment_proof_received": {
        "uk": "Дякуємо! Квитанцію отримано. Очікуйте перевірки.",
        "en": "Thank you! The receipt was received. Please wait for review.",
    },
    "no_session": {
        "uk": "Натисніть /start",
        "en": "Press /start",
    },
    "cancelled": {
        "uk": "Скасовано. Напишіть /start щоб почати знову.",
        "en": "Cancelled. Send /start to begin again.",
    },
    "my_id": {
        "uk": "Ваш ID: {user_id}",
        "en": "Your ID: {user_id}",
    },
    "error_generic": {
        "uk": "Сталася помилка. Спробуйте пізніше.",
        "en": "Something went wrong. Please try again later.",
    },
    # Admin
    "access_denied": {
        "uk": "⛔ Немає доступу",
        "en": "⛔ Access denied",
    },
    "usage_approve": {
        "uk": "Використання: /approve <id>",
        "en": "Usage: /approve <id>",
    },
    "usage_disable": {
        "uk": "Використання: /disable <id>",
        "en": "Usage: /disable <id>",
    },
    "submission_not_found": {
        "uk": "Заявку #{id} не знайдено",
        "en": "Request #{id} not found",
    },
    "pending_empty": {
        "uk": "Немає заявок",
        "en": "No requests",
    },
    "pending_item": {
        "uk": "#{id} — {customer_name}\n{title}\n{tariff_days} дн. / {price_amount} грн · {payment_status}",
        "en": "#{id} — {customer_name}\n{title}\n{tariff_days} days / {price_amount} UAH · {payment_status}",
    },
    "approved": {
        "uk": "✅ Заявка #{id} активна з {start_date} по {end_date}",
        "en": "✅ Request #{id} is active from {start_date} to {end_date}",
    },
    "disabled": {
        "uk": "🚫 Заявку #{id} вимкнено",
        "en": "🚫 Request #{id} disabled",
    },
    "notify_user_approved": {
        "uk": "🎉 Вашу рекламу #{id} опубліковано з {start_date} по {end_date}.",
        "en": "🎉 Your ad #{id} is published from {start_date} to {end_date}.",
    },
    "notify_admin_new_submission": {
        "uk": "🆕 Нова заявка #{id} — {customer_name}\n{title}",
        "en": "🆕 New request #{id} — {customer_name}\n{title}",
    },
    "notify_admin_payment_proof": {
        "uk": "💳 Квитанція до заявки #{id}\n{url}",
        "en": "💳 Receipt for request #{id}\n{url}",
    },
}


def get_message(key: str, lang: str | None) -> str:
    """
    Return message for key in language. lang in ('uk', 'en') or None.
    Falls back to 'uk' if lang missing; unknown keys are returned as-is.
    """
    if not key or key not in MESSAGES:
        return key or ""
    msgs = MESSAGES[key]
    if lang and lang in msgs:
        return msgs[lang]
    return msgs.get(DEFAULT_LANGUAGE, list(msgs.values())[0] if msgs else "")


def language_from_code(language_code: str | None) -> str:
    """Map Telegram language_code to a supported language."""
    code = (language_code or "").strip().lower()
    if code.startswith("en"):
        return "en"
    return DEFAULT_LANGUAGE
