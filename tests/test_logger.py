# /tests/test_logger.py

from types import SimpleNamespace

from app.core import config
from app.core import logger as logger_module


def test_suite_runs_without_file_sinks():
    assert config.LOG_TO_FILES is False


def test_level_sink_keeps_only_its_own_level(mocker):
    mock_logger = mocker.patch.object(logger_module, "logger")

    logger_module._add_level_sink("ERROR")

    call = mock_logger.add.call_args
    assert call.args[0].endswith("error.log")
    assert call.kwargs["level"] == "ERROR"
    keep = call.kwargs["filter"]
    assert keep({"level": SimpleNamespace(name="ERROR")})
    assert not keep({"level": SimpleNamespace(name="CRITICAL")})
    assert not keep({"level": SimpleNamespace(name="WARNING")})
    print("\n✅ SUCCESS: A level file only receives records of its own level.")
