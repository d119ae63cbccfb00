"""Unit tests for supabase_auth_tools and storage_tools."""
from unittest.mock import MagicMock, patch

AUTH_MODULE = "tools.supabase_auth_tools"
STORAGE_MODULE = "tools.storage_tools"


class TestCreateAuthUser:
    @patch(f"{AUTH_MODULE}.requests.post")
    def test_creates_confirmed_user(self, mock_post):
        mock_resp = MagicMock()
        mock_resp.json.return_value = {"id": "uid-1", "email": "an@example.com"}
        mock_resp.raise_for_status.return_value = None
        mock_post.return_value = mock_resp

        from tools.supabase_auth_tools import create_auth_user
        result = create_auth_user("an@example.com", "secret1")

        assert result == {"id": "uid-1", "email": "an@example.com"}
        call = mock_post.call_args
        assert call.args[0] == "https://crm-test.supabase.co/auth/v1/admin/users"
        assert call.kwargs["json"]["email_confirm"] is True
        assert call.kwargs["headers"]["apikey"] == "test-service-key"

    @patch(f"{AUTH_MODULE}.requests.post")
    def test_handles_error_gracefully(self, mock_post):
        mock_post.side_effect = RuntimeError("422 email exists")

        from tools.supabase_auth_tools import create_auth_user
        result = create_auth_user("an@example.com", "secret1")

        assert result["id"] is None
        assert "error" in result


class TestUpdateAndDelete:
    @patch(f"{AUTH_MODULE}.requests.put")
    def test_update_password(self, mock_put):
        mock_put.return_value = MagicMock()

        from tools.supabase_auth_tools import update_auth_password
        result = update_auth_password("uid-1", "newpass")

        assert result["updated"] is True
        assert mock_put.call_args.kwargs["json"] == {"password": "newpass"}

    @patch(f"{AUTH_MODULE}.requests.delete")
    def test_delete_failure(self, mock_delete):
        mock_resp = MagicMock()
        mock_resp.raise_for_status.side_effect = RuntimeError("404")
        mock_delete.return_value = mock_resp

        from tools.supabase_auth_tools import delete_auth_user
        result = delete_auth_user("uid-1")

        assert result["deleted"] is False
        assert result["error"] == "404"


class TestGetUserForToken:
    @patch(f"{AUTH_MODULE}.requests.get")
    def test_uses_caller_token(self, mock_get):
        mock_resp = MagicMock()
        mock_resp.json.return_value = {"id": "uid-1", "email": "an@example.com"}
        mock_get.return_value = mock_resp

        from tools.supabase_auth_tools import get_user_for_token
        result = get_user_for_token("access-token")

        assert result["id"] == "uid-1"
        assert mock_get.call_args.kwargs["headers"]["Authorization"] == "Bearer access-token"


class TestUploadAvatar:
    @patch(f"{STORAGE_MODULE}.requests.post")
    def test_returns_public_url(self, mock_post):
        mock_post.return_value = MagicMock()

        from tools.storage_tools import upload_avatar
        result = upload_avatar("uid_1.png", b"\x89PNG", "image/png")

        assert result["url"] == "https://crm-test.supabase.co/storage/v1/object/public/avatars/uid_1.png"
        assert mock_post.call_args.kwargs["headers"]["x-upsert"] == "true"
