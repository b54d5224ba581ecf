"""
DeTransport Ads — Telegram Bot API client. HTTP client with SSL, retries, error handling.

- requests.Session with explicit certifi certificate bundle
- urllib3 Retry on 5xx responses
- Every call returns (success, result, error) and never raises
- Token masking in logs
"""

import logging
from typing import Optional, Tuple, Dict, Any

import certifi
import requests
from requests.adapters import HTTPAdapter
from requests.exceptions import SSLError, ConnectionError, Timeout, RequestException
from urllib3.util.retry import Retry

from ads.exceptions import MediaUnavailable

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"

# Default timeouts (seconds)
DEFAULT_CONNECT_TIMEOUT = 10
DEFAULT_READ_TIMEOUT = 30

# Retry configuration
MAX_RETRIES = 3
BACKOFF_FACTOR = 0.5
RETRY_STATUS_CODES = [500, 502, 503, 504]


def _mask_token(token: str) -> str:
    """Mask bot token for logging. Shows first 4 and last 4 chars."""
    if not token or len(token) < 8:
        return "***"
    return f"{token[:4]}...{token[-4:]}"


def _create_session() -> requests.Session:
    """requests.Session using the certifi bundle and retrying server errors."""
    session = requests.Session()
    session.verify = certifi.where()
    retry_strategy = Retry(
        total=MAX_RETRIES,
        backoff_factor=BACKOFF_FACTOR,
        status_forcelist=RETRY_STATUS_CODES,
        allowed_methods=["GET", "POST"],
        raise_on_status=False,  # We handle status codes ourselves
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def _make_request(
    session: requests.Session,
    method: str,
    endpoint: str,
    token: str,
    json_data: Optional[Dict[str, Any]] = None,
    params: Optional[Dict[str, Any]] = None,
    timeout: Tuple[int, int] = (DEFAULT_CONNECT_TIMEOUT, DEFAULT_READ_TIMEOUT),
) -> Tuple[bool, Any, Optional[str]]:
    """
    Make HTTP request to Telegram API.

    Returns:
        (success: bool, result or None, error_message: str or None)
    """
    url = f"{TELEGRAM_API_BASE}/bot{token}/{endpoint}"
    masked_token = _mask_token(token)

    try:
        if method.upper() == "GET":
            response = session.get(url, params=params, timeout=timeout)
        elif method.upper() == "POST":
            response = session.post(url, json=json_data, params=params, timeout=timeout)
        else:
            return False, None, f"Unsupported method: {method}"

        if response.status_code == 200:
            data = response.json()
            if data.get("ok"):
                return True, data.get("result"), None
            error_desc = data.get("description", "Unknown Telegram API error")
            logger.warning(
                "Telegram API error endpoint=%s token=%s: %s",
                endpoint,
                masked_token,
                error_desc,
            )
            return False, None, error_desc

        logger.warning(
            "Telegram API HTTP %s endpoint=%s token=%s: %s",
            response.status_code,
            endpoint,
            masked_token,
            (response.text or "")[:200],
        )
        return False, None, f"HTTP {response.status_code}: {(response.text or '')[:200]}"

    except SSLError as e:
        logger.error("Telegram SSL error endpoint=%s token=%s: %s", endpoint, masked_token, e)
        return False, None, f"SSL error: {e}"

    except ConnectionError as e:
        logger.error("Telegram connection error endpoint=%s token=%s: %s", endpoint, masked_token, e)
        return False, None, f"Connection error: {e}"

    except Timeout as e:
        logger.error("Telegram timeout endpoint=%s token=%s: %s", endpoint, masked_token, e)
        return False, None, f"Timeout: {e}"

    except RequestException as e:
        logger.error("Telegram request error endpoint=%s token=%s: %s", endpoint, masked_token, e)
        return False, None, f"Request error: {e}"

    except ValueError as e:
        logger.error("Telegram invalid JSON endpoint=%s token=%s: %s", endpoint, masked_token, e)
        return False, None, f"Invalid response: {e}"


def send_message(
    token: str,
    chat_id: int,
    text: str,
    reply_markup: Optional[Dict[str, Any]] = None,
) -> Tuple[bool, Optional[int]]:
    """
    Send a message. reply_markup: dict e.g. {"inline_keyboard": [...]}.
    Returns (success, message_id).
    """
    if not token or not chat_id:
        logger.warning("send_message: missing token or chat_id")
        return False, None
    payload = {"chat_id": chat_id, "text": text}
    if reply_markup:
        payload["reply_markup"] = reply_markup
    success, result, error = _make_request(_create_session(), "POST", "sendMessage", token, json_data=payload)
    if not success:
        logger.warning("send_message failed chat_id=%s: %s", chat_id, error)
        return False, None
    return True, (result or {}).get("message_id")


def edit_message_text(
    token: str,
    chat_id: int,
    message_id: int,
    text: str,
    reply_markup: Optional[Dict[str, Any]] = None,
) -> bool:
    """Edit a bot message in place (inline button callbacks). Returns True if edited."""
    if not token or not chat_id or not message_id:
        return False
    payload = {"chat_id": chat_id, "message_id": message_id, "text": text}
    if reply_markup:
        payload["reply_markup"] = reply_markup
    success, _, error = _make_request(_create_session(), "POST", "editMessageText", token, json_data=payload)
    if not success:
        logger.debug("edit_message_text failed chat_id=%s message_id=%s: %s", chat_id, message_id, error)
    return success


def answer_callback_query(token: str, callback_query_id: str, text: Optional[str] = None) -> bool:
    """Answer callback query to remove the button loading state."""
    if not token or not callback_query_id:
        return False
    payload = {"callback_query_id": callback_query_id}
    if text:
        payload["text"] = text
    success, _, _ = _make_request(_create_session(), "POST", "answerCallbackQuery", token, json_data=payload)
    return success


def get_file(token: str, file_id: str) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
    """getFile: resolve a file_id to a File object with file_path."""
    if not token or not file_id:
        return False, None, "No token or file_id"
    return _make_request(_create_session(), "GET", "getFile", token, params={"file_id": file_id})


def build_file_url(token: str, file_path: str) -> str:
    """Durable download URL on Telegram's file host."""
    return f"{TELEGRAM_API_BASE}/file/bot{token}/{file_path}"


def get_me(token: str) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
    """Call getMe to verify the token and get bot info."""
    if not token:
        return False, None, "No token provided"
    return _make_request(_create_session(), "GET", "getMe", token)


def set_webhook(token: str, url: str, secret_token: Optional[str] = None) -> Tuple[bool, Optional[str]]:
    """Set webhook URL. Returns (success, message)."""
    if not token:
        return False, "No token"
    payload = {"url": url}
    if secret_token:
        payload["secret_token"] = secret_token
    success, _, error = _make_request(_create_session(), "POST", "setWebhook", token, json_data=payload)
    if success:
        return True, "Webhook set"
    return False, error or "Unknown error"


def delete_webhook(token: str, drop_pending_updates: bool = False) -> Tuple[bool, Optional[str]]:
    """Remove webhook. Returns (success, message)."""
    if not token:
        return False, "No token"
    payload = {"drop_pending_updates": drop_pending_updates}
    success, _, error = _make_request(_create_session(), "POST", "deleteWebhook", token, json_data=payload)
    if success:
        return True, "Webhook removed"
    return False, error or "Unknown error"


def get_updates(
    token: str,
    offset: Optional[int] = None,
    timeout: int = 25,
    limit: int = 100,
) -> Tuple[bool, Optional[list], Optional[str]]:
    """
    Long-polling getUpdates. Respects Telegram limits (timeout 1-50, limit 1-100).

    Returns:
        (success: bool, list of update dicts or None, error_message: str or None)
    """
    if not token:
        return False, None, "No token"
    timeout = max(1, min(50, timeout))
    limit = max(1, min(100, limit))
    params = {"timeout": timeout, "limit": limit}
    if offset is not None:
        params["offset"] = offset
    success, result, error = _make_request(
        _create_session(),
        "GET",
        "getUpdates",
        token,
        params=params,
        timeout=(DEFAULT_CONNECT_TIMEOUT, timeout + 10),
    )
    if success and result is not None:
        return True, result if isinstance(result, list) else [], None
    return False, None, error or "Unknown error"


def resolve_media_url(token: str, file_id: str) -> str:
    """
    Resolve a Telegram file_id to its download URL via getFile.
    Raises MediaUnavailable when the file host does not return a file_path.
    """
    success, result, error = get_file(token, file_id)
    file_path = (result or {}).get("file_path") if success else None
    if not file_path:
        logger.warning("resolve_media_url failed file_id=%s: %s", file_id, error or "no file_path")
        raise MediaUnavailable(error or "no file_path")
    return build_file_url(token, file_path)
