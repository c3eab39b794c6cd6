"""Reduce raw ``Set-Cookie`` headers to the pairs a client replays in ``Cookie``."""
from collections.abc import Iterable


def extract_cookie_pairs(raw: str | Iterable[str] | None) -> str:
    """Return the ``name=value`` pairs from one or more ``Set-Cookie`` values.

    Only the leading pair of each header is kept; attributes such as ``Path``,
    ``Expires`` or ``HttpOnly`` are dropped. Later headers win when a name
    repeats. The result is joined with ``"; "`` and is empty when nothing
    usable was found.

    >>> extract_cookie_pairs("sid=abc; Path=/; HttpOnly")
    'sid=abc'
    >>> extract_cookie_pairs(["sid=abc; Path=/", "theme=dark"])
    'sid=abc; theme=dark'
    """
    if raw is None:
        return ""
    headers = [raw] if isinstance(raw, str) else list(raw)
    pairs: dict[str, str] = {}
    for header in headers:
        first = header.split(";", 1)[0].strip()
        name, sep, value = first.partition("=")
        name = name.strip()
        if not sep or not name:
            continue
        pairs.pop(name, None)
        pairs[name] = value.strip()
    return "; ".join(f"{name}={value}" for name, value in pairs.items())


def merge_cookie_pairs(current: str | None, raw: str | Iterable[str] | None) -> str:
    """Apply rotated ``Set-Cookie`` header(s) to a replayable ``current`` cookie.

    Pairs named in ``raw`` replace the ones in ``current``; the rest are kept.

    >>> merge_cookie_pairs("sid=s1; csrf=c1", "sid=s2; Path=/")
    'csrf=c1; sid=s2'
    """
    existing = (current or "").split(";")
    rotated = [raw] if isinstance(raw, str) else list(raw or [])
    return extract_cookie_pairs([*existing, *rotated])
