from __future__ import annotations

import pytest

from markpress.slugify import UNTITLED_SLUG, generate_slug


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("Hello World", "hello-world"),
        ("What's New?", "whats-new"),
        ("", "section"),
        ("Multiple   Spaces", "multiple-spaces"),
        ("snake_case and kebab-case", "snake_case-and-kebab-case"),
        ("--Leading and trailing--", "leading-and-trailing"),
    ],
)
def test_generate_slug_expected_examples(title: str, expected: str):
    """Validates slug generation for representative examples."""
    assert generate_slug(title) == expected


def test_generate_slug_keeps_cjk_and_drops_full_width_punctuation():
    assert generate_slug("快速 开始！") == "快速-开始"
    assert generate_slug("第一章：概述") == "第一章概述"


def test_generate_slug_handles_emojis_and_special_characters():
    assert generate_slug("Read 📖, Write ✍️, Repeat!") == "read-write-repeat"


def test_generate_slug_returns_default_for_whitespace_only():
    assert generate_slug("   \n\t ") == UNTITLED_SLUG
    assert generate_slug("!!! ???") == UNTITLED_SLUG


def test_generate_slug_transliterates_when_unicode_is_not_preserved():
    assert generate_slug("Café", preserve_unicode=False) == "cafe"
    assert generate_slug("Über straße", preserve_unicode=False) == "uber-strae"
    assert generate_slug("快速", preserve_unicode=False) == UNTITLED_SLUG


def test_generate_slug_preserves_accents_by_default():
    assert generate_slug("Café") == "café"


def test_generate_slug_normalizes_compatibility_characters():
    assert generate_slug("ＡＢＣ") == "abc"
