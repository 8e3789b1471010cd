from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple, Union

ANCHORS = ("bottom-right", "bottom-left", "top-right", "top-left")
DISPLAY_MODES = ("title", "url", "both")

ColorSpec = Union[str, Tuple[int, int, int]]


@dataclass(frozen=True)
class AnnotationConfig:
    """
    Value-object describing one source-attribution overlay.
    Owned by the caller, read-only for the duration of a render.
    """
    title: str = ""
    url: str = ""
    anchor: str = "bottom-right"      # one of ANCHORS
    display_mode: str = "title"       # one of DISPLAY_MODES
    font_scale: float = 1.0           # [0.5 , 2.0]
    bg_opacity: float = 0.4           # [0.0 , 1.0]
    text_color: ColorSpec = "#FFFFFF"
    bg_color: ColorSpec = "#000000"

    def __post_init__(self) -> None:
        if self.anchor not in ANCHORS:
            raise ValueError(f"Unsupported anchor {self.anchor!r}; expected one of {ANCHORS}")
        if self.display_mode not in DISPLAY_MODES:
            raise ValueError(f"Unsupported display mode {self.display_mode!r}; expected one of {DISPLAY_MODES}")
        if not 0.5 <= self.font_scale <= 2.0:
            raise ValueError(f"font_scale must be within [0.5, 2.0], got {self.font_scale}")
        if not 0.0 <= self.bg_opacity <= 1.0:
            raise ValueError(f"bg_opacity must be within [0.0, 1.0], got {self.bg_opacity}")

    @property
    def shows_title(self) -> bool:
        return self.display_mode in ("title", "both")

    @property
    def shows_url(self) -> bool:
        return self.display_mode in ("url", "both")
