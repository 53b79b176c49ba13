"""Tests for nixdu.sizes."""

from __future__ import annotations

import pytest

from nixdu.sizes import format_size, parse_size


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("4096", 4096),
        ("12B", 12),
        ("50MB", 50_000_000),
        ("50mb", 50_000_000),
        ("5M", 5_000_000),
        ("2 GB", 2_000_000_000),
        ("1KiB", 1024),
        ("1.5 GiB", 1536 * 1024**2),
        (" 3 tib ", 3 * 1024**4),
    ],
)
def test_parse_size(text: str, expected: int) -> None:
    assert parse_size(text) == expected


@pytest.mark.parametrize("text", ["", "MB", "12 XB", "-5MB", "1.2.3"])
def test_parse_size_rejects_garbage(text: str) -> None:
    with pytest.raises(ValueError):
        parse_size(text)


@pytest.mark.parametrize(
    ("size", "expected"),
    [
        (0, "0 B"),
        (512, "512 B"),
        (1536, "1.5 KiB"),
        (10 * 1024**2, "10.0 MiB"),
        (3 * 1024**5, "3.0 PiB"),
        (2048 * 1024**5, "2048.0 PiB"),
    ],
)
def test_format_size(size: int, expected: str) -> None:
    assert format_size(size) == expected
