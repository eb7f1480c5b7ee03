"""Tests for the indenting logger."""

import io

from trackhelix.logging import Logger


def test_indented_log():
    stream = io.StringIO()
    logger = Logger(stream=stream)
    logger.log("top")
    with logger.indent:
        logger.log("inner ", 42)
    assert stream.getvalue() == "top\n    inner 42\n"
    assert logger.indent_level == 0


def test_max_log_indent_hides_deep_sections():
    stream = io.StringIO()
    logger = Logger(max_log_indent=0, stream=stream)
    with logger.indent:
        assert not logger.isLogging()
        logger.log("hidden")
    logger.log("shown")
    assert stream.getvalue() == "shown\n"


def test_timed_section():
    stream = io.StringIO()
    logger = Logger(stream=stream)
    with logger.timed("work") as timer:
        assert logger.indent_level == 1
        logger.log("step")
    assert timer.caption == "work"
    assert timer.elapsed >= 0.0
    lines = stream.getvalue().splitlines()
    assert lines[0] == "work:"
    assert lines[1] == "    step"
    assert lines[2].startswith("done work: ")


def test_warn_goes_to_stderr(capsys):
    logger = Logger(max_log_indent=-1)
    logger.log("quiet")
    logger.warn("careful")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "WARNING careful" in captured.err
