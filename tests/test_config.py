import pytest
from pydantic import ValidationError

from stockflow.core import config


def test_postgres_scheme_is_normalised():
    s = config.DevSettings(DATABASE_URL="postgres://user:pw@db:5432/stock")
    assert s.DATABASE_URL == "postgresql://user:pw@db:5432/stock"


def test_prod_refuses_placeholder_secret():
    with pytest.raises(ValidationError, match="JWT_SECRET"):
        config.ProdSettings(DATABASE_URL="postgresql://db/stock", JWT_SECRET="change_me")


def test_prod_requires_database_url():
    with pytest.raises(ValidationError, match="DATABASE_URL"):
        config.ProdSettings(DATABASE_URL=None, JWT_SECRET="s3cret")


def test_prod_defaults():
    s = config.ProdSettings(DATABASE_URL="postgresql://db/stock", JWT_SECRET="s3cret")
    assert s.LOG_FORMAT == "json"
    assert s.CORS_ALLOW_ORIGINS == []


@pytest.mark.parametrize("value", [0, -2])
def test_movement_attempts_must_be_positive(value):
    with pytest.raises(ValidationError):
        config.TestSettings(STOCK_MOVEMENT_MAX_ATTEMPTS=value)


def test_default_threshold_cannot_be_negative():
    with pytest.raises(ValidationError):
        config.TestSettings(DEFAULT_LOW_STOCK_THRESHOLD=-1)


def test_test_settings_disable_audit_file():
    s = config.TestSettings()
    assert s.AUDIT_LOG_FILE is None
    assert s.STOCK_MOVEMENT_MAX_ATTEMPTS == 3
    assert s.DEFAULT_LOW_STOCK_THRESHOLD == 0


def test_environment_aliases():
    assert config._ENV_TO_SETTINGS["production"] is config.ProdSettings
    assert config._ENV_TO_SETTINGS["testing"] is config.TestSettings
