import importlib

import pytest

from barbershop import config


def test_missing_secret_key_warns_and_falls_back(monkeypatch):
    monkeypatch.delenv("SECRET_KEY", raising=False)

    with pytest.warns(RuntimeWarning, match="SECRET_KEY"):
        reloaded = importlib.reload(config)

    assert reloaded.SECRET_KEY == "change-me-later"
    assert reloaded.LOCK_TIMEOUT_SECONDS == 5.0


def test_settings_come_from_the_environment(monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "from-env")
    monkeypatch.setenv("EVENT_FEED_SIZE", "50")

    reloaded = importlib.reload(config)

    assert reloaded.SECRET_KEY == "from-env"
    assert reloaded.EVENT_FEED_SIZE == 50
