"""
Free-text cleanup for user-submitted announcement fields.
Markup and control characters are removed before anything is stored or shown to other users.
"""
import re

_BLOCK_RE = re.compile(r"<(script|style)[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]*>")
# C0 controls except tab/newline, DEL, and C1 controls
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f-\x9f]")


def sanitize_text(value: str, *, multiline: bool = False) -> str:
    """Strip markup and control characters; single-line fields also collapse whitespace."""
    text = value.replace("\r\n", "\n").replace("\r", "\n")
    text = _BLOCK_RE.sub("", text)
    text = _TAG_RE.sub("", text)
    text = _CONTROL_RE.sub("", text)
    if not multiline:
        text = re.sub(r"\s+", " ", text)
    return text.strip()
