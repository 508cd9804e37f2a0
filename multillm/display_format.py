_TOKEN_UNITS = ((1_000_000, "M"), (1_000, "k"))


def format_token_count(count: int, width: int = 0) -> str:
    """Compact token count (1234 -> '1.2k'), right-aligned to `width` when given."""
    for threshold, suffix in _TOKEN_UNITS:
        if count >= threshold:
            text = f"{count / threshold:.1f}{suffix}"
            break
    else:
        text = str(count)
    return text.rjust(width)


def format_token_string(prompt_tokens: int, completion_tokens: int, fixed_width: bool = False) -> str:
    width = 6 if fixed_width else 0
    return (
        f"({format_token_count(prompt_tokens, width)})in->"
        f"({format_token_count(completion_tokens, width)})out"
    )


def format_seconds(seconds: float) -> str:
    if seconds >= 60:
        minutes, secs = divmod(seconds, 60)
        return f"{int(minutes)}m{secs:04.1f}s"
    return f"{seconds:.1f}s"


def truncate(text: str, limit: int = 120) -> str:
    """Collapse whitespace and cut to `limit` characters with an ellipsis."""
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[:limit - 3] + "..."
