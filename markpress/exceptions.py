"""Package-specific exception types."""

from __future__ import annotations


class MarkpressError(ValueError):
    """Base class for rendering-related errors.

    The rendering engine recovers from every subclass internally; they only
    reach callers through the strict lookup helpers and custom renderers.
    """


class FormulaError(MarkpressError):
    """Raised when a formula cannot be rendered.

    Args:
        latex: Formula source that failed to render.
        reason: Short human-readable explanation.
    """

    def __init__(self, latex: str, reason: str):
        self.latex = latex
        self.reason = reason
        super().__init__(f"Cannot render formula {latex!r}: {reason}")


class UnknownPresetError(MarkpressError, KeyError):
    """Raised when a preset id is not registered.

    Args:
        kind: Preset family, e.g. ``"color theme"`` or ``"code style"``.
        name: Identifier that was looked up.
    """

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"Unknown {kind}: {name!r}")

    def __str__(self) -> str:
        return self.args[0]
