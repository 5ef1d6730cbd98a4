import pytest

from contract_fetcher.config import DatabaseSettings, ExplorerSettings, normalize_database_url
from contract_fetcher.errors import SetupError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("ETHERSCAN_API_KEY", "ETHERSCAN_API_URL", "ETHERSCAN_TIMEOUT", "DATABASE_URL"):
        monkeypatch.delenv(name, raising=False)


def test_explicit_api_key_wins(monkeypatch):
    monkeypatch.setenv("ETHERSCAN_API_KEY", "from-env")
    assert ExplorerSettings.from_env("from-flag").api_key == "from-flag"


def test_api_key_falls_back_to_env(monkeypatch):
    monkeypatch.setenv("ETHERSCAN_API_KEY", "from-env")
    settings = ExplorerSettings.from_env()
    assert settings.api_key == "from-env"
    assert settings.request_delay_seconds == 0.25
    assert settings.base_url == "https://api.etherscan.io/v2/api"


def test_missing_api_key_is_setup_error():
    with pytest.raises(SetupError, match="ETHERSCAN_API_KEY"):
        ExplorerSettings.from_env("   ")


def test_api_key_hidden_from_repr():
    assert "secret" not in repr(ExplorerSettings(api_key="secret"))


def test_bad_timeout_is_setup_error(monkeypatch):
    monkeypatch.setenv("ETHERSCAN_TIMEOUT", "soon")
    with pytest.raises(SetupError):
        ExplorerSettings.from_env("key")


def test_database_url_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db:5432/contracts")
    settings = DatabaseSettings.from_env(batch_size=10)
    assert settings.url == "postgresql://u:p@db:5432/contracts"
    assert settings.batch_size == 10


def test_missing_database_url_is_setup_error():
    with pytest.raises(SetupError, match="DATABASE_URL"):
        DatabaseSettings.from_env()


def test_batch_size_must_be_positive():
    with pytest.raises(SetupError):
        DatabaseSettings.from_env("sqlite:///x.db", batch_size=0)


def test_normalize_leaves_other_urls_alone():
    assert normalize_database_url("sqlite:///contracts.db") == "sqlite:///contracts.db"
