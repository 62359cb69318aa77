"""Tests for slug generation."""

import pytest

from src.utils.slug import generate_slug


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Hello World", "hello-world"),
        ("Coimbatore Vizha 2025!", "coimbatore-vizha-2025"),
        ("  Leading and trailing  ", "leading-and-trailing"),
        ("Café au lait", "cafe-au-lait"),
        ("Rates -- up, again", "rates-up-again"),
        ("already-a-slug", "already-a-slug"),
    ],
)
def test_generate_slug(text: str, expected: str) -> None:
    assert generate_slug(text) == expected


def test_symbols_only_gives_empty_slug() -> None:
    assert generate_slug("!!! ???") == ""


def test_slug_is_stable() -> None:
    slug = generate_slug("Election Night Live")
    assert generate_slug(slug) == slug
