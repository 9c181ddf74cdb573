"""Tests for environment-driven settings."""

from finhome.config import Settings


class TestAllowedOrigins:
    """Test CORS origin parsing from the environment."""

    def test_comma_separated(self, monkeypatch):
        monkeypatch.setenv("ALLOWED_ORIGINS", "http://a.com, http://b.com")

        assert Settings().allowed_origins == ["http://a.com", "http://b.com"]

    def test_single_origin(self, monkeypatch):
        monkeypatch.setenv("ALLOWED_ORIGINS", "https://finhome.vn")

        assert Settings().allowed_origins == ["https://finhome.vn"]

    def test_blank_entries_dropped(self, monkeypatch):
        monkeypatch.setenv("ALLOWED_ORIGINS", "http://a.com,,")

        assert Settings().allowed_origins == ["http://a.com"]

    def test_default_when_unset(self, monkeypatch):
        monkeypatch.delenv("ALLOWED_ORIGINS", raising=False)

        assert Settings(_env_file=None).allowed_origins == ["http://localhost:3000", "http://localhost:8000"]
