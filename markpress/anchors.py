"""Unique heading anchor ids for one rendered document."""

from __future__ import annotations

from .slugify import generate_slug
from .text import strip_tags


class AnchorRegistry:
    """Hand out unique anchor ids in document order.

    Duplicates are numbered GitHub-style, including cascading collisions:
    ``"Header"``, ``"Header"``, ``"Header 1"`` yields ``header``,
    ``header-1``, ``header-1-1``.

    A registry belongs to a single parse call.
    """

    def __init__(self, preserve_unicode: bool = True):
        self.preserve_unicode = preserve_unicode
        # Next counter per base slug, plus every id handed out so far; a
        # numbered id may collide with a later heading's base slug.
        self._slug_counters: dict[str, int] = {}
        self._used_slugs: set[str] = set()

    def __contains__(self, slug: str) -> bool:
        return slug in self._used_slugs

    def __len__(self) -> int:
        return len(self._used_slugs)

    def anchor_for(self, heading_html: str) -> str:
        """Return a fresh id for a heading given its rendered inline HTML."""
        base_slug = generate_slug(strip_tags(heading_html), preserve_unicode=self.preserve_unicode)

        count = self._slug_counters.get(base_slug, 0)
        slug = base_slug if count == 0 else f"{base_slug}-{count}"
        while slug in self._used_slugs:
            count += 1
            slug = f"{base_slug}-{count}"

        self._slug_counters[base_slug] = count + 1
        self._used_slugs.add(slug)
        return slug
