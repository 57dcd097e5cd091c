"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from dreamjournal.config import ENV_PREFIX, Settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in ["STRATEGY", "GENERATION_DELAY", "RANDOM_SEED", "NLTK_DOWNLOAD", "STORE_PATH",
                 "NOTIFIER", "NOTIFICATIONS_GRANTED", "TIMEZONE", "LOG_LEVEL", "LOG_FILE"]:
        monkeypatch.delenv(ENV_PREFIX + name, raising=False)
    return monkeypatch


class TestSettings:

    def test_defaults(self, clean_env):
        settings = Settings.from_env(dotenv=False)
        assert settings.strategy == "auto"
        assert settings.generation_delay == 1.5
        assert settings.random_seed is None
        assert settings.allow_nltk_download is True
        assert settings.store_path is None
        assert settings.notifier == "apscheduler"

    def test_from_environment(self, clean_env):
        clean_env.setenv("DREAM_JOURNAL_STRATEGY", "template")
        clean_env.setenv("DREAM_JOURNAL_GENERATION_DELAY", "0.2")
        clean_env.setenv("DREAM_JOURNAL_RANDOM_SEED", "7")
        clean_env.setenv("DREAM_JOURNAL_NLTK_DOWNLOAD", "false")
        clean_env.setenv("DREAM_JOURNAL_NOTIFIER", "memory")
        clean_env.setenv("DREAM_JOURNAL_NOTIFICATIONS_GRANTED", "no")
        clean_env.setenv("DREAM_JOURNAL_LOG_LEVEL", "debug")

        settings = Settings.from_env(dotenv=False)
        assert settings.strategy == "template"
        assert settings.generation_delay == 0.2
        assert settings.random_seed == 7
        assert settings.allow_nltk_download is False
        assert settings.notifier == "memory"
        assert settings.notifications_granted is False
        assert settings.log_level == "DEBUG"

    def test_blank_values_ignored(self, clean_env):
        clean_env.setenv("DREAM_JOURNAL_STORE_PATH", "")
        clean_env.setenv("DREAM_JOURNAL_RANDOM_SEED", "")
        settings = Settings.from_env(dotenv=False)
        assert settings.store_path is None
        assert settings.random_seed is None

    def test_unknown_strategy(self, clean_env):
        clean_env.setenv("DREAM_JOURNAL_STRATEGY", "oracle")
        with pytest.raises(ValidationError):
            Settings.from_env(dotenv=False)

    def test_negative_delay(self):
        with pytest.raises(ValidationError):
            Settings(generation_delay=-1)

    def test_blank_path_is_none(self):
        assert Settings(store_path="  ").store_path is None
