from __future__ import annotations

from datetime import datetime

from relman.core.result import Err, Ok
from relman.release.ids import is_release_id, new_release_id, next_release_id

NOW = datetime(2024, 3, 5, 14, 7, 9)


def test_new_release_id_format() -> None:
    assert new_release_id(NOW) == "20240305140709"
    assert is_release_id(new_release_id())


def test_is_release_id() -> None:
    assert is_release_id("20240305140709")
    assert not is_release_id("2024030514070")
    assert not is_release_id("stray")


def test_next_release_id() -> None:
    assert next_release_id(["20240101000000"], NOW) == Ok("20240305140709")
    assert next_release_id([], NOW) == Ok("20240305140709")


def test_collision_is_reported() -> None:
    result = next_release_id(["20240305140709"], NOW)

    assert isinstance(result, Err)
    assert result.error.kind == "release_exists"


def test_clock_going_backwards_is_reported() -> None:
    result = next_release_id(["20250101000000"], NOW)

    assert isinstance(result, Err)
    assert "sort before" in result.error.message


def test_non_id_directories_do_not_block() -> None:
    assert next_release_id(["zzz-manual"], NOW) == Ok("20240305140709")
