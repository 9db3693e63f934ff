from app.shared.config.settings import get_settings


def test_suite_runs_in_test_environment():
    settings = get_settings()

    assert settings.is_testing is True
    assert settings.is_development is False
    assert settings.is_production is False


def test_environment_flags_follow_environment():
    settings = get_settings().model_copy(update={"ENVIRONMENT": "development"})

    assert settings.is_development is True
    assert settings.is_testing is False


def test_cors_origins_are_split_and_trimmed():
    settings = get_settings().model_copy(update={"CORS_ORIGINS": "http://a.test, http://b.test"})

    assert settings.cors_origins_list == ["http://a.test", "http://b.test"]
