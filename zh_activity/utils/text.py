"""Text helpers for single-line event descriptions."""

TITLE_LIMIT = 50
BODY_LIMIT = 60


def truncate(text: str, limit: int) -> str:
    """Cut ``text`` to ``limit`` characters, ending with an ellipsis."""
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text


def truncate_title(title: str) -> str:
    return truncate(title, TITLE_LIMIT)


def truncate_body(body: str) -> str:
    """Truncate free text such as comment bodies and flatten newlines."""
    return truncate(body, BODY_LIMIT).replace("\r", "").replace("\n", " ")


def first_line(text: str) -> str:
    return text.split("\n", 1)[0]


def quote(text: str) -> str:
    """Double-quote ``text`` the way event descriptions display names."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
