"""
Error model tests.
"""

import dataclasses

import orjson
import pytest

from formbind.errors import (
    ERR_MIN_SIZE,
    ERR_REQUIRED,
    Errors,
    ValidationError,
    ValidationFailed,
)


def make_errors():
    return (
        Errors()
        .add(["title"], ERR_REQUIRED, "Required")
        .add(["title"], ERR_MIN_SIZE, "MinSize")
        .add(["author", "coauthor"], "SameAuthor", "Authors must differ")
    )


def test_add_keeps_order():
    errors = make_errors()

    assert len(errors) == 3
    assert [e.classification for e in errors] == [ERR_REQUIRED, ERR_MIN_SIZE, "SameAuthor"]
    assert errors[0].field_names == ("title",)


def test_field_names_list_becomes_tuple():
    error = ValidationError(["a", "b"], "Kind", "message")

    assert error.field_names == ("a", "b")
    assert error.fields() == ["a", "b"]
    assert error.kind() == "Kind"
    assert str(error) == "message"


def test_validation_error_is_frozen():
    error = ValidationError(("a",), "Kind", "message")

    with pytest.raises(dataclasses.FrozenInstanceError):
        error.message = "other"


def test_equality():
    errors = make_errors()

    assert errors == make_errors()
    assert errors == list(make_errors())
    assert errors == tuple(make_errors())
    assert errors != Errors()
    assert Errors() == []
    assert not Errors()


def test_duplicates_are_kept():
    errors = Errors().add(["x"], ERR_REQUIRED, "Required").add(["x"], ERR_REQUIRED, "Required")

    assert len(errors) == 2


def test_has_and_for_field():
    errors = make_errors()

    assert errors.has(ERR_REQUIRED)
    assert not errors.has("Email")
    assert [e.classification for e in errors.for_field("title")] == [ERR_REQUIRED, ERR_MIN_SIZE]
    assert len(errors.for_field("coauthor")) == 1
    assert errors.for_field("missing") == []


def test_slicing_returns_errors():
    tail = make_errors()[1:]

    assert isinstance(tail, Errors)
    assert len(tail) == 2


def test_append_and_extend():
    errors = Errors()
    errors.append(ValidationError(("a",), "A", "A"))
    errors.extend([ValidationError(("b",), "B", "B"), ValidationError(("c",), "C", "C")])

    assert [e.field_names[0] for e in errors] == ["a", "b", "c"]


def test_to_json():
    data = orjson.loads(make_errors().to_json())

    assert data[0] == {"fieldNames": ["title"], "classification": "Required", "message": "Required"}
    assert data[2]["fieldNames"] == ["author", "coauthor"]


def test_raise_if_any():
    Errors().raise_if_any()

    with pytest.raises(ValidationFailed) as info:
        make_errors().raise_if_any()

    assert len(info.value.errors) == 3


def test_validation_failed_message():
    failure = ValidationFailed(make_errors())
    text = str(failure)

    assert text.startswith("Validation failed:")
    assert "title: Required (Required)" in text
    assert "author, coauthor: SameAuthor (Authors must differ)" in text
    assert str(ValidationFailed(Errors())) == "Validation failed"


def test_validation_failed_first():
    failure = ValidationFailed(make_errors())

    assert failure.first().classification == ERR_REQUIRED
    assert failure.first("coauthor").classification == "SameAuthor"
    assert failure.first("missing") is None
    assert ValidationFailed(Errors()).first() is None
