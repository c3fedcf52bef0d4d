import pytest

from sagatest import DEFAULT_TIMEOUT_MS, HarnessConfig
from sagatest.config import IDLE_TICKS_ENV_KEY, TIMEOUT_ENV_KEY, WARN_ON_TIMEOUT_ENV_KEY
from sagatest.scheduler import DEFAULT_IDLE_TICKS


def test_defaults():
    config = HarnessConfig()

    assert config.timeout_ms == DEFAULT_TIMEOUT_MS == 250
    assert config.warn_on_timeout is True
    assert config.idle_ticks == DEFAULT_IDLE_TICKS


def test_from_env_without_overrides():
    assert HarnessConfig.from_env({}) == HarnessConfig()


def test_from_env_reads_overrides():
    config = HarnessConfig.from_env(
        {
            TIMEOUT_ENV_KEY: "100",
            WARN_ON_TIMEOUT_ENV_KEY: "off",
            IDLE_TICKS_ENV_KEY: "3",
        }
    )

    assert config == HarnessConfig(timeout_ms=100, warn_on_timeout=False, idle_ticks=3)


@pytest.mark.parametrize("raw", ["0", "false", "No", " OFF "])
def test_warning_can_be_silenced(raw):
    assert HarnessConfig.from_env({WARN_ON_TIMEOUT_ENV_KEY: raw}).warn_on_timeout is False


def test_other_warning_values_keep_it_on():
    assert HarnessConfig.from_env({WARN_ON_TIMEOUT_ENV_KEY: "yes"}).warn_on_timeout is True


def test_from_env_uses_process_environment(monkeypatch):
    monkeypatch.setenv(TIMEOUT_ENV_KEY, "40")

    assert HarnessConfig.from_env().timeout_ms == 40


def test_invalid_timeout_in_env():
    with pytest.raises(ValueError, match=TIMEOUT_ENV_KEY):
        HarnessConfig.from_env({TIMEOUT_ENV_KEY: "soon"})


def test_invalid_idle_ticks_in_env():
    with pytest.raises(ValueError, match=IDLE_TICKS_ENV_KEY):
        HarnessConfig.from_env({IDLE_TICKS_ENV_KEY: "1.5"})


def test_idle_ticks_must_be_positive():
    with pytest.raises(ValueError, match="idle_ticks"):
        HarnessConfig(idle_ticks=0)


def test_timeout_must_be_numeric():
    with pytest.raises(TypeError, match="timeout_ms"):
        HarnessConfig(timeout_ms="250")


def test_config_is_frozen():
    config = HarnessConfig()

    with pytest.raises(AttributeError):
        config.timeout_ms = 10
