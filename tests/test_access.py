"""Unit tests for role permissions and contact visibility."""
import uuid
from unittest.mock import AsyncMock, patch

import pytest

from conftest import make_profile
from services.access import (
    PermissionDenied,
    contact_scope,
    default_permissions,
    has_permission,
    require,
)


class TestPermissions:
    def test_only_admin_exports_and_manages_users(self):
        assert has_permission("admin", "export", "view")
        assert has_permission("admin", "users", "delete")
        assert not has_permission("manager", "export", "view")
        assert has_permission("manager", "users", "view")
        assert not has_permission("manager", "users", "edit")
        assert not has_permission("sales", "users", "view")

    def test_unknown_role_gets_sales_matrix(self):
        assert default_permissions("intern") == default_permissions("sales")

    def test_require_raises_for_missing_permission(self):
        with pytest.raises(PermissionDenied):
            require(make_profile("sales"), "contacts", "delete")
        require(make_profile("admin"), "contacts", "delete")


class TestContactScope:
    @pytest.mark.asyncio
    async def test_admin_sees_everything(self):
        assert await contact_scope(AsyncMock(), make_profile("admin")) is None

    @pytest.mark.asyncio
    async def test_manager_sees_own_and_team(self):
        manager = make_profile("manager")
        team = [uuid.uuid4(), uuid.uuid4()]
        with patch("services.access.profiles_repo.managed_sales_ids", new=AsyncMock(return_value=team)):
            scope = await contact_scope(AsyncMock(), manager)
        assert scope == [manager.id, *team]

    @pytest.mark.asyncio
    async def test_sales_sees_own(self):
        sales = make_profile("sales")
        assert await contact_scope(AsyncMock(), sales) == [sales.id]
