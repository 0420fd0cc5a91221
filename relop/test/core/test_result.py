from __future__ import annotations

import pytest

from relop.core.result import Err, Ok, Result


def _half(n: int) -> Result[int, str]:
    if n % 2:
        return Err(f"{n} is odd")
    return Ok(n // 2)


def test_values_compare_by_payload() -> None:
    assert Ok(2) == Ok(2)
    assert Err("boom") == Err("boom")
    assert Ok("x") != Err("x")


def test_repr() -> None:
    assert repr(Ok("x")) == "Ok('x')"
    assert repr(Err("boom")) == "Err('boom')"


def test_pattern_matching() -> None:
    match _half(4):
        case Ok(value):
            assert value == 2
        case Err(_):
            pytest.fail("expected Ok")

    match _half(3):
        case Ok(_):
            pytest.fail("expected Err")
        case Err(error):
            assert error == "3 is odd"
