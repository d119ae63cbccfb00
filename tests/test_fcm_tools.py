"""Unit tests for fcm_tools: web push message building and sending."""
from unittest.mock import MagicMock, patch

FCM_MODULE = "tools.fcm_tools"


class TestBuildWebpushMessage:
    def test_message_shape(self):
        from tools.fcm_tools import build_webpush_message
        msg = build_webpush_message(
            "tok", "Nhắc nhở lịch hẹn", "body", "https://crm.example.com/appointments/1",
            {"appointment_id": 1, "contact": None},
        )["message"]

        assert msg["token"] == "tok"
        assert msg["data"] == {
            "appointment_id": "1",
            "contact": "",
            "url": "https://crm.example.com/appointments/1",
        }
        webpush = msg["webpush"]
        assert webpush["headers"] == {"TTL": "900", "Urgency": "high"}
        assert webpush["notification"]["requireInteraction"] is True
        assert webpush["notification"]["tag"] == "crm-appointment"
        assert webpush["notification"]["icon"] == "https://crm.example.com/icons/icon-192x192.png"
        assert webpush["fcm_options"]["link"] == "https://crm.example.com/appointments/1"


class TestSendWebpush:
    @patch(f"{FCM_MODULE}.requests.post")
    @patch(f"{FCM_MODULE}._access_token", return_value="oauth-token")
    def test_sends_successfully(self, mock_token, mock_post):
        mock_resp = MagicMock(status_code=200)
        mock_resp.json.return_value = {"name": "projects/crm-test/messages/123"}
        mock_post.return_value = mock_resp

        from tools.fcm_tools import send_webpush
        result = send_webpush("tok", "t", "b", "https://x")

        assert result == {
            "sent": True,
            "message_id": "projects/crm-test/messages/123",
            "unregistered": False,
        }
        call = mock_post.call_args
        assert call.args[0] == "https://fcm.googleapis.com/v1/projects/crm-test/messages:send"
        assert call.kwargs["headers"]["Authorization"] == "Bearer oauth-token"

    @patch(f"{FCM_MODULE}.requests.post")
    @patch(f"{FCM_MODULE}._access_token", return_value="oauth-token")
    def test_flags_unregistered_token(self, mock_token, mock_post):
        mock_resp = MagicMock(status_code=404)
        mock_resp.json.return_value = {
            "error": {
                "status": "NOT_FOUND",
                "message": "Requested entity was not found.",
                "details": [{"errorCode": "UNREGISTERED"}],
            }
        }
        mock_post.return_value = mock_resp

        from tools.fcm_tools import send_webpush
        result = send_webpush("dead", "t", "b", "https://x")

        assert result["sent"] is False
        assert result["unregistered"] is True
        assert result["error"] == "Requested entity was not found."

    @patch(f"{FCM_MODULE}.requests.post")
    @patch(f"{FCM_MODULE}._access_token", return_value="oauth-token")
    def test_server_error_is_not_unregistered(self, mock_token, mock_post):
        mock_resp = MagicMock(status_code=500, text="boom")
        mock_resp.json.side_effect = ValueError("no json")
        mock_post.return_value = mock_resp

        from tools.fcm_tools import send_webpush
        result = send_webpush("tok", "t", "b", "https://x")

        assert result["sent"] is False
        assert result["unregistered"] is False

    @patch(f"{FCM_MODULE}.requests.post")
    @patch(f"{FCM_MODULE}._access_token", return_value="oauth-token")
    def test_handles_error_gracefully(self, mock_token, mock_post):
        mock_post.side_effect = RuntimeError("network error")

        from tools.fcm_tools import send_webpush
        result = send_webpush("tok", "t", "b", "https://x")

        assert result["sent"] is False
        assert "network error" in result["error"]
