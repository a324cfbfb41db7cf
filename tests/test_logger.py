import io

import pytest

from hbex import logger
from hbex.logger import Level, Logger


@pytest.fixture
def stream():
    buf = io.StringIO()
    saved_out, saved_level = logger.LOG.out, logger.LOG.level
    logger.set_out(buf)
    logger.set_level(Level.DEBUG)
    yield buf
    logger.LOG.out = saved_out
    logger.LOG.level = saved_level


def test_logger_writes_all_levels(stream):
    logger.LOG.debug("debug log")
    logger.LOG.info("info log")
    logger.LOG.warn(ValueError("test error"))
    logger.debug("debug log2")
    logger.info("info log2")
    lines = stream.getvalue().splitlines()
    assert len(lines) == 5
    assert lines[0].endswith("[D] debug log")
    assert lines[1].endswith("[I] info log")
    assert lines[2].endswith("[W] test error")
    assert lines[3].endswith("[D] debug log2")
    assert lines[4].endswith("[I] info log2")


def test_level_filters_lower_records():
    buf = io.StringIO()
    log = Logger(buf, Level.WARN)
    log.debug("hidden")
    log.info("hidden")
    assert buf.getvalue() == ""
    log.warn("shown")
    log.error("also")
    lines = buf.getvalue().splitlines()
    assert lines[0].endswith("[W] shown")
    assert lines[1].endswith("[E] also")


def test_default_level_is_info():
    buf = io.StringIO()
    log = Logger(buf)
    log.debug("hidden")
    assert buf.getvalue() == ""
    log.info("visible")
    assert buf.getvalue().rstrip().endswith("[I] visible")


def test_arguments_joined_like_sprint():
    buf = io.StringIO()
    log = Logger(buf, Level.DEBUG)
    log.info("accountId=", 5, ",state=", "working")
    log.info(1, 2)
    lines = buf.getvalue().splitlines()
    assert lines[0].endswith("[I] accountId=5,state=working")
    assert lines[1].endswith("[I] 1 2")


def test_set_level_changes_filtering():
    buf = io.StringIO()
    log = Logger(buf, Level.ERROR)
    log.info("no")
    log.set_level(Level.INFO)
    log.info("yes")
    assert buf.getvalue().count("[I]") == 1


def test_fatal_exits():
    buf = io.StringIO()
    log = Logger(buf, Level.DEBUG)
    with pytest.raises(SystemExit) as exc_info:
        log.fatal("fatal log")
    assert exc_info.value.code == 1
    assert "[F] fatal log" in buf.getvalue()


def test_fatal_ignored_above_level():
    buf = io.StringIO()
    log = Logger(buf, Level.PANIC)
    log.fatal("fatal log")
    assert buf.getvalue() == ""


def test_panic_raises_with_message():
    buf = io.StringIO()
    log = Logger(buf, Level.DEBUG)
    with pytest.raises(RuntimeError, match="panicf log"):
        log.panic("panicf log")
    assert "[P] panicf log" in buf.getvalue()


@pytest.mark.parametrize(
    "name, expected",
    [
        ("debug", Level.DEBUG),
        ("DEBUG", Level.DEBUG),
        ("info", Level.INFO),
        ("WARN", Level.WARN),
        ("error", Level.ERROR),
        ("fatal", Level.FATAL),
        ("PANIC", Level.PANIC),
        ("Warn", Level.ERROR),
        ("", Level.ERROR),
    ],
)
def test_parse_level(name, expected):
    assert logger.parse_level(name) is expected


def test_configure_from_env_sets_level_and_file(stream, tmp_path):
    path = tmp_path / "logger.log"
    logger.configure_from_env({logger.LEVEL_ENV: "debug", logger.FILE_ENV: str(path)})
    assert logger.LOG.level is Level.DEBUG
    logger.debug("to file")
    logger.LOG.out.close()
    assert path.read_text(encoding="utf-8").rstrip().endswith("[D] to file")


def test_configure_from_env_defaults_to_error(stream):
    logger.configure_from_env({})
    assert logger.LOG.level is Level.ERROR
    assert logger.LOG.out is stream


def test_configure_from_env_reports_unopenable_file(stream, tmp_path):
    bad = tmp_path / "missing" / "x.log"
    logger.configure_from_env({logger.FILE_ENV: str(bad)})
    output = stream.getvalue()
    assert "[E]" in output
    assert "[W]" not in output