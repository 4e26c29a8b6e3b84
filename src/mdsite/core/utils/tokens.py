"""Shared markdown-it token utilities"""


def heading_level(token) -> int | None:
    """Return the heading level (1-6) for a heading_open token, else None."""
    if token.type == 'heading_open' and token.tag and token.tag[0] == 'h' and token.tag[1:].isdigit():
        return int(token.tag[1:])
    return None


def inline_text(token) -> str:
    """Plain text of an inline token, markup stripped."""
    if not token.children:
        return token.content
    return ''.join(c.content for c in token.children if c.type in ('text', 'code_inline'))


def count_words(tokens: list) -> int:
    """Words in inline, fence and code block tokens."""
    return sum(
        len(t.content.split())
        for t in tokens
        if t.type in ('inline', 'fence', 'code_block')
    )
