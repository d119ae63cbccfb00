"""Unit tests for DATABASE_URL handling."""
import pytest

from db.connection import database_url, uses_pooler


class TestDatabaseUrl:
    def test_plain_postgres_urls_get_asyncpg_driver(self):
        url = database_url("postgres://crm:pw@db.example.com:5432/crm")
        assert url.drivername == "postgresql+asyncpg"
        assert url.host == "db.example.com"
        assert database_url("postgresql://crm:pw@localhost/crm").drivername == "postgresql+asyncpg"

    def test_asyncpg_url_is_kept(self):
        assert database_url("postgresql+asyncpg://crm:pw@localhost/crm").database == "crm"

    def test_other_drivers_are_rejected(self):
        with pytest.raises(RuntimeError):
            database_url("postgresql+psycopg2://crm:pw@localhost/crm")
        with pytest.raises(RuntimeError):
            database_url("sqlite+aiosqlite:///:memory:")


def test_pooler_port_disables_statement_cache(monkeypatch):
    monkeypatch.delenv("DB_PGBOUNCER", raising=False)
    assert uses_pooler(database_url("postgresql://u:p@pooler.example.com:6543/postgres"))
    assert not uses_pooler(database_url("postgresql://u:p@db.example.com:5432/postgres"))
    monkeypatch.setenv("DB_PGBOUNCER", "true")
    assert uses_pooler(database_url("postgresql://u:p@db.example.com:5432/postgres"))
