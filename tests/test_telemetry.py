from typing import Iterator

import pytest

from keyoverlay.errors import UserAbort
from keyoverlay.runtime import telemetry
from keyoverlay.runtime.telemetry import LogSettings


@pytest.fixture(autouse=True)
def restore_settings() -> Iterator[None]:
    previous = telemetry.current_settings()
    yield
    telemetry.configure(previous)


def test_settings_from_env() -> None:
    settings = LogSettings.from_env(
        {
            "KEYOVERLAY_LOG_LEVEL": "debug",
            "KEYOVERLAY_LOG_FILE": "overlay.log",
            "KEYOVERLAY_LOG_JSON": "yes",
            "KEYOVERLAY_DISABLE_CONSOLE": "1",
            "KEYOVERLAY_LOG_BUFFER_SIZE": "512",
        }
    )

    assert settings == LogSettings(
        level="DEBUG",
        console=False,
        json=True,
        log_file="overlay.log",
        buffer_size=512,
    )


def test_settings_defaults_without_env() -> None:
    assert LogSettings.from_env({}) == LogSettings()


def test_negative_buffer_rejected() -> None:
    with pytest.raises(ValueError):
        LogSettings(buffer_size=-1)


def test_configure_swaps_settings_and_loggers() -> None:
    before = telemetry.get_logger("keyoverlay.test")
    chosen = LogSettings(level="warning", color=False)

    assert telemetry.configure(chosen) is chosen
    assert telemetry.current_settings().level == "WARNING"
    assert telemetry.get_logger("keyoverlay.test") is not before


def test_span_propagates_errors() -> None:
    with pytest.raises(KeyError):
        with telemetry.span("test::fail", component="tests", metadata={"n": 1}):
            raise KeyError("boom")
    with pytest.raises(UserAbort):
        with telemetry.span("test::cancel") as handle:
            handle.add_metadata("stage", "prompt")
            raise UserAbort("Quit")
