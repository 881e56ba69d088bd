from markpress.models import ParseContext, ParserState
from markpress.parser import _is_closing_fence, _strip_fence_indent, _try_open_fence


def test_try_open_fence_sets_context_fields():
    ctx = ParseContext()

    opened = _try_open_fence(ctx, "   ```python extra")

    assert opened is True
    assert ctx.state is ParserState.IN_CODE_BLOCK
    assert ctx.code_language == "python"
    assert ctx.fence_char == "`"
    assert ctx.fence_length == 3
    assert ctx.fence_indent_columns == 3


def test_try_open_fence_with_tildes_and_long_run():
    ctx = ParseContext()

    assert _try_open_fence(ctx, "~~~~~") is True
    assert ctx.fence_char == "~"
    assert ctx.fence_length == 5
    assert ctx.code_language == ""


def test_try_open_fence_ignored_when_already_in_code():
    ctx = ParseContext(state=ParserState.IN_CODE_BLOCK, fence_char="~", fence_length=3)

    assert _try_open_fence(ctx, "```") is False
    assert ctx.fence_char == "~"
    assert ctx.fence_length == 3


def test_try_open_fence_rejects_backtick_in_info_string():
    ctx = ParseContext()

    assert _try_open_fence(ctx, "``` foo`bar") is False
    assert ctx.state is ParserState.NORMAL


def test_tilde_fence_allows_backtick_in_info_string():
    assert _try_open_fence(ParseContext(), "~~~ foo`bar") is True


def test_try_open_fence_rejects_four_space_indent():
    assert _try_open_fence(ParseContext(), "    ```") is False


def test_closing_fence_respects_indent_limit():
    ctx = ParseContext(state=ParserState.IN_CODE_BLOCK, fence_char="`", fence_length=3)

    assert _is_closing_fence(ctx, "    ```") is False
    assert _is_closing_fence(ctx, "   ```") is True
    assert _is_closing_fence(ctx, "```") is True


def test_closing_fence_must_be_at_least_as_long():
    ctx = ParseContext(state=ParserState.IN_CODE_BLOCK, fence_char="`", fence_length=4)

    assert _is_closing_fence(ctx, "```") is False
    assert _is_closing_fence(ctx, "````") is True
    assert _is_closing_fence(ctx, "`````") is True


def test_closing_fence_must_match_character_and_stand_alone():
    ctx = ParseContext(state=ParserState.IN_CODE_BLOCK, fence_char="`", fence_length=3)

    assert _is_closing_fence(ctx, "~~~") is False
    assert _is_closing_fence(ctx, "``` python") is False
    assert _is_closing_fence(ctx, "```   ") is True


def test_closing_fence_without_open_fence():
    assert _is_closing_fence(ParseContext(), "```") is False


def test_strip_fence_indent():
    assert _strip_fence_indent("    code", 2) == "  code"
    assert _strip_fence_indent(" code", 3) == "code"
    assert _strip_fence_indent("code", 3) == "code"
    assert _strip_fence_indent("\tcode", 2) == "\tcode"


def test_reset_code_block_restores_defaults():
    ctx = ParseContext()
    _try_open_fence(ctx, "  ~~~~ js")
    ctx.code_lines.append("x")

    ctx.reset_code_block()

    assert ctx == ParseContext()
