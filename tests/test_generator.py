"""Tests for password generation."""

import random
import secrets

import pytest

from keyforge import generator
from keyforge.generator import (
    DIGITS,
    LOWERCASE,
    SYMBOLS,
    UPPERCASE,
    GenerationOptions,
    ValidationError,
    generate_password,
    random_index,
    strong_random_available,
)


def only(**enabled) -> GenerationOptions:
    flags = {"use_uppercase": False, "use_lowercase": False, "use_digits": False, "use_symbols": False}
    flags.update(enabled)
    return GenerationOptions(**flags)


def test_symbol_set() -> None:
    assert SYMBOLS == "!@#$%^&*()_+[]{}|;:,.<>?"


def test_alphabet_canonical_order() -> None:
    assert GenerationOptions().alphabet() == UPPERCASE + LOWERCASE + DIGITS + SYMBOLS
    assert only(use_digits=True, use_uppercase=True).alphabet() == UPPERCASE + DIGITS


@pytest.mark.parametrize("length", [4, 5, 16, 63, 64])
def test_password_has_requested_length(length: int) -> None:
    assert len(generate_password(GenerationOptions(length=length))) == length


@pytest.mark.parametrize(
    "flags, alphabet",
    [
        ({"use_uppercase": True}, UPPERCASE),
        ({"use_lowercase": True}, LOWERCASE),
        ({"use_digits": True}, DIGITS),
        ({"use_symbols": True}, SYMBOLS),
        ({"use_lowercase": True, "use_symbols": True}, LOWERCASE + SYMBOLS),
    ],
)
def test_characters_come_from_enabled_classes(flags, alphabet) -> None:
    password = generate_password(only(length=64, **flags))
    assert set(password) <= set(alphabet)


def test_uppercase_only_eight_chars() -> None:
    password = generate_password(only(use_uppercase=True, length=8))
    assert len(password) == 8
    assert password.isalpha() and password.isupper()


@pytest.mark.parametrize("length", [1, 4, 16, 64, 500])
def test_no_classes_is_validation_error(length: int) -> None:
    with pytest.raises(ValidationError, match="Select at least one character type"):
        generate_password(only(length=length))


def test_validation_error_is_value_error() -> None:
    assert issubclass(ValidationError, ValueError)


@pytest.mark.parametrize("requested, expected", [(0, 4), (3, 4), (4, 4), (30, 30), (64, 64), (65, 64), (1000, 64)])
def test_length_is_clamped(requested: int, expected: int) -> None:
    assert GenerationOptions(length=requested).length == expected


@pytest.mark.parametrize("bad", ["16", 16.5, None, True])
def test_non_integer_length_rejected(bad) -> None:
    with pytest.raises(ValidationError):
        GenerationOptions(length=bad)


def test_repeated_characters_allowed(monkeypatch) -> None:
    monkeypatch.setattr(generator, "random_index", lambda upper: 0)
    assert generate_password(only(use_digits=True, length=6)) == "000000"


def test_random_index_in_range() -> None:
    for _ in range(200):
        assert 0 <= random_index(3) < 3


def test_random_index_rejects_empty_range() -> None:
    with pytest.raises(ValueError):
        random_index(0)


def test_fallback_when_no_strong_source(monkeypatch, caplog) -> None:
    def unavailable(*args, **kwargs):
        raise NotImplementedError

    monkeypatch.setattr(secrets, "randbelow", unavailable)
    monkeypatch.setattr(secrets, "token_bytes", unavailable)
    monkeypatch.setattr(random, "randrange", lambda upper: upper - 1)

    assert strong_random_available() is False
    with caplog.at_level("WARNING", logger="keyforge.generator"):
        assert random_index(10) == 9
    assert "non-cryptographic fallback" in caplog.text

    password = generate_password(only(use_uppercase=True, length=4))
    assert password == "ZZZZ"


def test_strong_source_is_checked_per_call(monkeypatch) -> None:
    assert strong_random_available() is True

    def unavailable(*args, **kwargs):
        raise NotImplementedError

    monkeypatch.setattr(secrets, "token_bytes", unavailable)
    assert strong_random_available() is False
    monkeypatch.undo()
    assert strong_random_available() is True


def test_random_index_uses_capability_check(monkeypatch) -> None:
    checks = []

    def unavailable() -> bool:
        checks.append(True)
        return False

    monkeypatch.setattr(generator, "strong_random_available", unavailable)
    monkeypatch.setattr(random, "randrange", lambda upper: 0)

    assert generate_password(only(use_digits=True, length=5)) == "00000"
    assert len(checks) == 5
