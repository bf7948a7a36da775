from __future__ import annotations

import pytest

from webtoolkit.core.errors import EmptyInputError, NoValidCharactersError, SlugError
from webtoolkit.core.naming import RANDOM_STRING_SOURCE, random_string, slugify


def test_random_string_length_and_alphabet():
    assert len(RANDOM_STRING_SOURCE) == 64

    s = random_string(10)
    assert len(s) == 10
    assert all(c in RANDOM_STRING_SOURCE for c in s)

    assert random_string(0) == ""


def test_random_string_calls_differ():
    seen = {random_string(25) for _ in range(50)}
    assert len(seen) == 50


def test_random_string_rejects_negative_length():
    with pytest.raises(ValueError):
        random_string(-1)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("now is the time", "now-is-the-time"),
        ("now is the time 123", "now-is-the-time-123"),
        ("now is the time!@#$%^&*()_123", "now-is-the-time-123"),
        ("this is^.a__=TEST", "this-is-a-test"),
        ("  -- leading and trailing --  ", "leading-and-trailing"),
        ("hello,こんにちはテスト test", "hello-test"),
        ("Café", "caf"),
    ],
)
def test_slugify_valid(raw, expected):
    assert slugify(raw) == expected


def test_slugify_blank_input():
    for raw in ("", "   "):
        with pytest.raises(EmptyInputError) as ei:
            slugify(raw)
        assert str(ei.value) == "empty string not permitted"


@pytest.mark.parametrize("raw", ["-=+ _^%", "こんにちはテスト", "\t\n"])
def test_slugify_nothing_left(raw):
    with pytest.raises(NoValidCharactersError):
        slugify(raw)


def test_slug_errors_share_a_base():
    with pytest.raises(SlugError):
        slugify("")
    with pytest.raises(SlugError):
        slugify("!!!")
