from fitnext.app.core.settings import get_settings


def test_settings_defaults():
    settings = get_settings()
    assert settings.app_name == "FitNext"
    assert settings.environment == "development"
    assert isinstance(settings.secret_key, str) and settings.secret_key
    assert isinstance(settings.database_url, str) and settings.database_url
    assert settings.temp_password_ttl_minutes == 10
    assert settings.cancellation_cutoff_minutes == 60
    assert settings.booking_max_attempts >= 1


def test_settings_is_a_singleton():
    assert get_settings() is get_settings()
