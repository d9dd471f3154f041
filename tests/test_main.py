"""Tests for application wiring."""

from unittest.mock import AsyncMock, MagicMock, patch

from order_api.main import app, check_database_connection, create_app


def _engine(conn: AsyncMock) -> MagicMock:
    engine = MagicMock()
    engine.connect.return_value.__aenter__.return_value = conn
    return engine


class TestCreateApp:
    """Tests for create_app."""

    def test_routes_registered(self):
        paths = {route.path for route in create_app().routes}

        assert {
            "/",
            "/health",
            "/health/ready",
            "/api/orders/upload",
            "/api/orders/export-current-fiscal-year",
        } <= paths

    def test_upload_is_post_and_export_is_get(self):
        methods = {route.path: route.methods for route in app.routes if hasattr(route, "methods")}

        assert "POST" in methods["/api/orders/upload"]
        assert "GET" in methods["/api/orders/export-current-fiscal-year"]

    async def test_unknown_path_is_not_found(self, client):
        response = await client.get("/api/orders/nope")

        assert response.status_code == 404


class TestCheckDatabaseConnection:
    """Tests for the startup connectivity probe."""

    async def test_connected(self):
        conn = AsyncMock()
        with patch("order_api.main.get_engine", return_value=_engine(conn)):
            assert await check_database_connection() is True

        conn.execute.assert_awaited_once()

    async def test_unreachable_is_reported_not_raised(self):
        conn = AsyncMock()
        conn.execute.side_effect = OSError("connection refused")
        with patch("order_api.main.get_engine", return_value=_engine(conn)):
            assert await check_database_connection() is False
