"""Tests for hounds.core.result module."""

import pytest

from hounds.core.result import Err, Ok, Result


def _parse(raw: str) -> Result[int, str]:
    if raw.isdigit():
        return Ok(int(raw))
    return Err(f"not a version code: {raw!r}")


class TestOk:
    def test_repr(self) -> None:
        assert repr(Ok("edit-1")) == "Ok('edit-1')"

    def test_equality(self) -> None:
        assert Ok(1) == Ok(1)
        assert Ok(1) != Err(1)

    def test_is_frozen(self) -> None:
        result = Ok(1)
        with pytest.raises(AttributeError):
            result.value = 2  # type: ignore[misc]


class TestErr:
    def test_repr(self) -> None:
        assert repr(Err("boom")) == "Err('boom')"

    def test_is_frozen(self) -> None:
        result = Err("boom")
        with pytest.raises(AttributeError):
            result.error = "other"  # type: ignore[misc]


class TestBranching:
    def test_isinstance_branching(self) -> None:
        result = _parse("x1")
        if isinstance(result, Err):
            assert "not a version code" in result.error
        else:
            pytest.fail("expected Err")

    def test_match(self) -> None:
        match _parse("12"):
            case Ok(code):
                assert code == 12
            case Err(message):
                pytest.fail(message)
