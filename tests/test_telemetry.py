import logging

from speech_runtime.telemetry import LoggingTelemetry, NullTelemetry, build_telemetry, configure_logging


def test_logging_telemetry_attaches_payload(caplog) -> None:
    telemetry = LoggingTelemetry(logging.getLogger("speech_runtime.test"))

    with caplog.at_level(logging.INFO, logger="speech_runtime.test"):
        telemetry.emit("tts_run_finished", {"generation": 3})

    record = caplog.records[-1]
    assert record.getMessage() == "tts_run_finished"
    assert record.telemetry == {"generation": 3}


def test_build_telemetry_respects_flag() -> None:
    assert isinstance(build_telemetry(False), NullTelemetry)
    assert isinstance(build_telemetry(True), LoggingTelemetry)


def test_configure_logging_installs_one_handler() -> None:
    configure_logging("debug")
    configure_logging("debug")

    logger = logging.getLogger("speech_runtime")
    rich_handlers = [handler for handler in logger.handlers if type(handler).__name__ == "RichHandler"]
    assert len(rich_handlers) == 1
    assert logger.level == logging.DEBUG
