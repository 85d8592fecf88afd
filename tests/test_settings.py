import pytest

import settings as settings_module
from settings import Settings, get_settings


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch, tmp_path):
    monkeypatch.setattr(settings_module, "PROJECT_ROOT", tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults_without_environment(monkeypatch) -> None:
    for name in ("ETHOS_SCRAPER_PORT", "ETHOS_CHECK_TIMEOUT_MS", "ETHOS_SCRAPER_LANDING_URL"):
        monkeypatch.delenv(name, raising=False)
    assert get_settings() == Settings()


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("ETHOS_SCRAPER_PORT", "4010")
    monkeypatch.setenv("ETHOS_SCRAPER_LANDING_URL", " https://tabs.example.com ")
    monkeypatch.setenv("ETHOS_CHECK_TIMEOUT_MS", "not-a-number")

    current = get_settings()

    assert current.scraper_port == 4010
    assert current.landing_url == "https://tabs.example.com"
    assert current.check_timeout_ms == 45000


def test_env_file_does_not_override_process_env(monkeypatch, tmp_path) -> None:
    (tmp_path / ".env").write_text(
        "# local overrides\nETHOS_SCRAPER_SELECTOR_TIMEOUT_MS=1500\nETHOS_SCRAPER_HOST='127.0.0.1'\n",
        encoding="utf-8",
    )
    # register the variable so the value loaded from .env is removed afterwards
    monkeypatch.setenv("ETHOS_SCRAPER_SELECTOR_TIMEOUT_MS", "0")
    monkeypatch.delenv("ETHOS_SCRAPER_SELECTOR_TIMEOUT_MS")
    monkeypatch.setenv("ETHOS_SCRAPER_HOST", "10.0.0.5")

    current = get_settings()

    assert current.selector_timeout_ms == 1500
    assert current.scraper_host == "10.0.0.5"
