"""Screen geometry helpers used to place floating overlays."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(slots=True, frozen=True)
class Rect:
    """Axis-aligned rectangle in screen (viewport) coordinates."""

    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def united(self, other: "Rect") -> "Rect":
        left = min(self.left, other.left)
        top = min(self.top, other.top)
        right = max(self.right, other.right)
        bottom = max(self.bottom, other.bottom)
        return Rect(left, top, right - left, bottom - top)


@dataclass(slots=True, frozen=True)
class AnchorPoint:
    """Top-left screen coordinate of a floating overlay."""

    top: float
    left: float


@runtime_checkable
class LayoutProvider(Protocol):
    """Resolves the on-screen bounding box of a document span.

    Implementations return ``None`` when no live geometry is available (for
    example while the view is hidden or not yet laid out).
    """

    def rect_for_range(self, start: int, end: int) -> Rect | None:
        ...


class MonospaceLayout:
    """Layout estimate for a fixed-pitch, non-wrapping text grid.

    Used by headless surfaces and tests; the Qt view supplies real cursor
    rectangles instead.
    """

    def __init__(
        self,
        text_source,
        *,
        char_width: float = 8.0,
        line_height: float = 18.0,
        origin: tuple[float, float] = (0.0, 0.0),
        scroll_y: float = 0.0,
    ) -> None:
        self._text_source = text_source
        self.char_width = float(char_width)
        self.line_height = float(line_height)
        self.origin = origin
        self.scroll_y = float(scroll_y)

    def rect_for_range(self, start: int, end: int) -> Rect | None:
        text = self._text_source()
        if text is None:
            return None
        length = len(text)
        start = max(0, min(start, length))
        end = max(0, min(end, length))
        if end < start:
            start, end = end, start
        first = self._caret_rect(text, start)
        if end == start:
            return first
        last = self._caret_rect(text, end)
        if last.top == first.top:
            return first.united(last)
        # Multi-line spans cover every line they touch, full width of the widest.
        widest = max(len(line) for line in text[start:end].split("\n"))
        left = self.origin[0]
        return Rect(
            left,
            first.top,
            max(widest * self.char_width, last.right - left),
            last.bottom - first.top,
        )

    def _caret_rect(self, text: str, position: int) -> Rect:
        line = text.count("\n", 0, position)
        line_start = text.rfind("\n", 0, position) + 1
        column = position - line_start
        left = self.origin[0] + column * self.char_width
        top = self.origin[1] + line * self.line_height - self.scroll_y
        return Rect(left, top, 0.0, self.line_height)


@dataclass(slots=True, frozen=True)
class AnchorCalculator:
    """Derives overlay anchor points from selection bounding boxes.

    Toolbars sit above the selection, horizontally centered on it. Menus
    (the slash palette) open below the caret, left-aligned.
    """

    overlay_width: float = 200.0
    overlay_height: float = 36.0
    gap: float = 8.0

    def above_centered(self, rect: Rect) -> AnchorPoint:
        top = rect.top - self.overlay_height - self.gap
        left = rect.left + rect.width / 2 - self.overlay_width / 2
        return AnchorPoint(top=max(0.0, top), left=max(0.0, left))

    def below_start(self, rect: Rect) -> AnchorPoint:
        return AnchorPoint(top=rect.bottom + self.gap, left=max(0.0, rect.left))


__all__ = ["AnchorCalculator", "AnchorPoint", "LayoutProvider", "MonospaceLayout", "Rect"]
