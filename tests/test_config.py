"""Tests for AppConfig loading."""

from admin_console.config import AppConfig, get_config, reset_config


class TestAppConfig:
    """Environment-driven settings."""

    def test_defaults(self, config):
        assert config.MIN_PASSWORD_LENGTH == 6
        assert config.RESET_PASSWORD_PATH == "/reset-password"
        assert config.SIGN_IN_PATH == "/"
        assert config.RESET_REDIRECT_DELAY_S == 2.0
        assert config.ADMIN_ACTIVITY_LIMIT == 50
        assert config.SUPERADMIN_ACTIVITY_LIMIT == 100
        assert config.CLIENT_USER_AGENT.startswith("admin-console/")

    def test_reads_environment(self, config):
        assert config.SUPABASE_URL == "https://test.supabase.co"
        assert config.SUPABASE_ANON_KEY.get_secret_value() == "test-anon-key"
        assert config.is_supabase_configured

    def test_anon_key_is_masked(self, config):
        assert "test-anon-key" not in repr(config)

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("MIN_PASSWORD_LENGTH", "10")
        monkeypatch.setenv("SUPABASE_URL", "")

        overridden = AppConfig()

        assert overridden.MIN_PASSWORD_LENGTH == 10
        assert not overridden.is_supabase_configured

    def test_singleton_and_reset(self):
        first = get_config()

        assert get_config() is first
        reset_config()
        assert get_config() is not first
