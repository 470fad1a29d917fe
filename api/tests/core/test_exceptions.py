"""Tests for the error taxonomy."""

import pytest

from src.core.exceptions import (
    ConflictError,
    ErrorKind,
    InvalidStateError,
    ValidationError,
    kind_for_status,
)


class TestKindForStatus:
    @pytest.mark.parametrize(
        "status_code,expected",
        [
            (400, ErrorKind.VALIDATION),
            (401, ErrorKind.UNAUTHORIZED),
            (403, ErrorKind.FORBIDDEN),
            (404, ErrorKind.NOT_FOUND),
            (405, ErrorKind.VALIDATION),
            (409, ErrorKind.CONFLICT),
            (415, ErrorKind.VALIDATION),
            (422, ErrorKind.VALIDATION),
            (500, ErrorKind.INTERNAL),
            (503, ErrorKind.INTERNAL),
        ],
    )
    def test_mapping(self, status_code: int, expected: ErrorKind) -> None:
        assert kind_for_status(status_code) == expected


class TestAppErrorStatus:
    def test_invalid_state_is_bad_request(self) -> None:
        assert InvalidStateError("nope", "x").status_code == 400

    def test_conflict(self) -> None:
        assert ConflictError("taken", "x").status_code == 409

    def test_validation(self) -> None:
        error = ValidationError("bad", "bad_input")
        assert error.status_code == 422
        assert error.code == "bad_input"
