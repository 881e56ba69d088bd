"""Slug generation for heading anchors."""

from __future__ import annotations

import re
import unicodedata

UNTITLED_SLUG = "section"


def _is_kept(character: str) -> bool:
    if character in "-_" or character.isspace():
        return True
    if "\ufe00" <= character <= "\ufe0f":
        return False
    category = unicodedata.category(character)
    # Drops punctuation (P*), symbols (S*) and control or format characters (C*).
    return category[0] not in "PSC"


def generate_slug(title: str, preserve_unicode: bool = True) -> str:
    """Generate an anchor id from the visible text of a heading.

    The title is NFKC-normalized (or transliterated to ASCII), casefolded and
    stripped of punctuation and symbols except hyphens and underscores; runs
    of whitespace collapse to a single hyphen. The result never needs
    percent-encoding beyond the characters of the title itself.

    Args:
        title: Heading text with markup already removed.
        preserve_unicode: Keep non-ASCII letters such as CJK characters. When
            False, the title is transliterated and non-ASCII text dropped.

    Returns:
        str: Hyphen-separated slug, or ``"section"`` when nothing remains.

    Examples:
        generate_slug("Hello World")  # "hello-world"
        generate_slug("What's New?")  # "whats-new"
        generate_slug("快速 开始！")  # "快速-开始"
        generate_slug("Café", preserve_unicode=False)  # "cafe"
    """
    normalized = unicodedata.normalize("NFKC" if preserve_unicode else "NFKD", title)
    if not preserve_unicode:
        normalized = normalized.encode("ascii", "ignore").decode("ascii")

    slug = "".join(character for character in normalized.casefold() if _is_kept(character))
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-{2,}", "-", slug)
    slug = slug.strip("-")

    return slug or UNTITLED_SLUG
