"""
Logger tests.
"""

import io
from dataclasses import dataclass

import orjson
import pytest

from formbind import binding, get_settings, schema_for
from formbind.utils.logger import LogLevel, configure_logging, get_logger


@pytest.fixture
def stream():
    # Load settings first so they do not reset the stream afterwards
    get_settings()
    buffer = io.StringIO()
    configure_logging(LogLevel.DEBUG, stream=buffer)
    return buffer


def test_text_output(stream):
    get_logger("formbind.test").info("Something happened", field="title", errors=2)

    line = stream.getvalue().strip()

    assert "[INFO] formbind.test: Something happened field=title errors=2" in line


def test_json_output():
    get_settings()
    buffer = io.StringIO()
    configure_logging("warning", format="json", stream=buffer)

    get_logger("formbind.test").warning("Careful", rule="Bogus")
    get_logger("formbind.test").info("Hidden")

    lines = buffer.getvalue().splitlines()
    record = orjson.loads(lines[0])

    assert len(lines) == 1
    assert record["level"] == "WARNING"
    assert record["logger"] == "formbind.test"
    assert record["message"] == "Careful"
    assert record["context"] == {"rule": "Bogus"}


def test_level_filtering(stream):
    configure_logging("error", stream=stream)
    logger = get_logger("formbind.test")

    logger.warning("Hidden")

    assert stream.getvalue() == ""
    assert not logger.is_enabled_for(LogLevel.WARNING)
    assert logger.is_enabled_for(LogLevel.ERROR)


def test_with_context(stream):
    get_logger("formbind.test").with_context(request="abc").debug("Checked", field="id")

    assert "request=abc field=id" in stream.getvalue()


def test_error_with_exception(stream):
    try:
        raise RuntimeError("boom")
    except RuntimeError as exc:
        get_logger("formbind.test").error("Hook failed", exception=exc)

    output = stream.getvalue()

    assert "[ERROR] formbind.test: Hook failed" in output
    assert "RuntimeError: boom" in output


def test_loggers_created_later_use_configured_stream(stream):
    get_logger("formbind.test.late.unique").warning("Late")

    assert "Late" in stream.getvalue()


def test_unknown_rule_is_logged(stream):
    @dataclass
    class Form:
        value: str = binding("Required;Shiny", default="")

    schema_for(Form)

    assert "Unknown rule ignored rule=Shiny" in stream.getvalue()


def test_malformed_directive_is_logged(stream):
    @dataclass
    class Form:
        value: str = binding("Size(3", default="")

    assert schema_for(Form).fields[0].rules == ()
    assert "[WARNING] formbind.tags" in stream.getvalue()


@pytest.mark.parametrize("level", ["loud", "", "TRACE"])
def test_invalid_level(level):
    with pytest.raises(ValueError):
        configure_logging(level)


def test_invalid_format():
    with pytest.raises(ValueError):
        configure_logging("info", format="xml")


def test_level_parse():
    assert LogLevel.parse(" Info ") is LogLevel.INFO
    assert LogLevel.parse(10) is LogLevel.DEBUG
    assert LogLevel.parse(LogLevel.ERROR) is LogLevel.ERROR


def test_directive_on_embedded_field_is_logged(stream):
    @dataclass
    class Base:
        code: str = binding("Required", name="code")

    @dataclass
    class Form:
        base: Base = binding("Required", embed=True, default_factory=Base)

    schema_for(Form)

    output = stream.getvalue()
    assert "[WARNING] formbind.schema" in output
    assert "Directive on embedded field ignored" in output
    assert "directive=Required" in output
