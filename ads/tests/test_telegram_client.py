"""
DeTransport Ads — Tests for the Telegram client helpers (no network; session is mocked).
"""

from unittest.mock import MagicMock, patch

from django.test import SimpleTestCase

from ads.exceptions import MediaUnavailable
from ads.services import telegram_client

CLIENT = "ads.services.telegram_client"


def _response(status_code=200, payload=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    response.text = text
    return response


class TelegramClientTests(SimpleTestCase):

    def test_mask_token(self):
        self.assertEqual(telegram_client._mask_token("123456:ABCDEFGH"), "1234...EFGH")
        self.assertEqual(telegram_client._mask_token("short"), "***")

    def test_build_file_url(self):
        self.assertEqual(
            telegram_client.build_file_url("123:ABC", "photos/file_1.jpg"),
            "https://api.telegram.org/file/bot123:ABC/photos/file_1.jpg",
        )

    @patch(f"{CLIENT}._create_session")
    def test_send_message_returns_message_id(self, mock_session):
        mock_session.return_value.post.return_value = _response(payload={"ok": True, "result": {"message_id": 42}})
        self.assertEqual(telegram_client.send_message("123:ABC", 1, "hi"), (True, 42))

    @patch(f"{CLIENT}._create_session")
    def test_api_error_is_returned_not_raised(self, mock_session):
        mock_session.return_value.post.return_value = _response(
            payload={"ok": False, "description": "Bad Request: chat not found"},
        )
        self.assertEqual(telegram_client.send_message("123:ABC", 1, "hi"), (False, None))

    @patch(f"{CLIENT}._create_session")
    def test_http_error(self, mock_session):
        mock_session.return_value.get.return_value = _response(status_code=409, text="Conflict")
        success, result, error = telegram_client.get_updates("123:ABC")
        self.assertFalse(success)
        self.assertIn("409", error)

    @patch(f"{CLIENT}.get_file", return_value=(True, {"file_path": "documents/r.pdf"}, None))
    def test_resolve_media_url(self, _mock_get_file):
        self.assertEqual(
            telegram_client.resolve_media_url("123:ABC", "f1"),
            "https://api.telegram.org/file/bot123:ABC/documents/r.pdf",
        )

    @patch(f"{CLIENT}.get_file", return_value=(False, None, "Bad Request: invalid file_id"))
    def test_resolve_media_url_unavailable(self, _mock_get_file):
        with self.assertRaises(MediaUnavailable):
            telegram_client.resolve_media_url("123:ABC", "f1")
