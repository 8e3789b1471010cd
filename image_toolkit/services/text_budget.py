"""
Text budgeting policies for overlays.

Two independent heuristics that work in different units:
    * truncate_url_for_display  - characters
    * fit_font_size             - pixels
"""
from __future__ import annotations
from typing import Callable, Sequence
from urllib.parse import quote, urlsplit

ELLIPSIS = "…"
URL_DISPLAY_MAX = 40
MIN_FONT_SIZE = 12
MAX_FIT_PASSES = 3
_URL_SAFE = "/%?=&:@!$'()*+,;~"

# (text, font_size) → rendered width in px
Measure = Callable[[str, int], float]


def _round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def truncate_url_for_display(url: str, max_len: int = URL_DISPLAY_MAX) -> str:
    """
    Shorten a URL for display (not a network shortener).

    "https://ja.wikipedia.org/wiki/Tokyo_Tower_History"
        → "ja.wikipedia.org/wiki/Tokyo_Tower_Histo…"
    """
    try:
        parsed = urlsplit(url)
        host = parsed.hostname
    except ValueError:
        parsed, host = None, None
    if parsed is None or not parsed.scheme or not host:
        if len(url) <= max_len:
            return url
        return url[:max_len - 1] + ELLIPSIS

    # displayed the way a browser serialises it: non-ASCII percent-encoded
    path = quote(parsed.path or "/", safe=_URL_SAFE)
    if parsed.query:
        path += "?" + quote(parsed.query, safe=_URL_SAFE)
    full = host + path
    if len(full) <= max_len:
        return full
    if len(host) >= max_len - 1:
        return host[:max_len - 1] + ELLIPSIS
    remaining = max_len - len(host) - 1
    return host + path[:remaining] + ELLIPSIS


def base_font_size(width: int, height: int, font_scale: float = 1.0) -> int:
    """6% of the short side (at least 20px), scaled, floored at MIN_FONT_SIZE."""
    base = max(_round_half_up(min(width, height) * 0.06), 20)
    return max(_round_half_up(base * font_scale), MIN_FONT_SIZE)


def max_text_width(width: int, font_scale: float = 1.0) -> float:
    """Widest a line may get before the font shrinks; grows with the scale up to 90%."""
    return width * min(0.3 + 0.2 * font_scale, 0.9)


def widest_line(lines: Sequence[str], font_size: int, measure: Measure) -> float:
    return max(measure(line, font_size) for line in lines)


def fit_font_size(
    lines: Sequence[str],
    font_size: int,
    max_width: float,
    measure: Measure,
    max_passes: int = MAX_FIT_PASSES,
):
    """
    Shrink *font_size* proportionally until the widest line fits *max_width*.

    Glyph widths do not scale exactly linearly, so the measure → shrink →
    re-measure step is repeated (bounded by *max_passes*).

    Returns:
        (font_size, widest measured line at that size)
    """
    text_width = widest_line(lines, font_size, measure)
    for _ in range(max_passes):
        if text_width <= max_width or font_size <= MIN_FONT_SIZE:
            break
        shrunk = max(_round_half_up(font_size * (max_width / text_width)), MIN_FONT_SIZE)
        if shrunk >= font_size:
            shrunk = font_size - 1
        font_size = shrunk
        text_width = widest_line(lines, font_size, measure)
    return font_size, text_width
