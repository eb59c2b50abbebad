import config


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("STOP_ON_ERROR", raising=False)
        settings = config.Settings()
        assert settings.stop_on_error is False
        assert settings.log_format == "json"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("STOP_ON_ERROR", "true")
        monkeypatch.setenv("RATE_LIMIT_PER_MINUTE", "5")
        settings = config.Settings()
        assert settings.stop_on_error is True
        assert settings.rate_limit_per_minute == 5

    def test_environment_presets(self):
        assert isinstance(config.get_settings_for_environment("development"), config.DevelopmentSettings)
        assert isinstance(config.get_settings_for_environment("Production"), config.ProductionSettings)
        assert config.get_settings_for_environment("testing").rate_limit_enabled is False
        assert type(config.get_settings_for_environment("staging")) is config.Settings
        assert isinstance(config.get_settings_for_environment("testing"), config.TestingSettings)
