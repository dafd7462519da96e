"""Editor package: headless document surface, selection tracking, and autosave."""

from .document_model import DocumentState, SelectionRange, TextChange
from .geometry import AnchorCalculator, AnchorPoint, LayoutProvider, MonospaceLayout, Rect
from .selection_tracker import SelectionState, SelectionTracker
from .surface import DocumentSurface

__all__ = [
    "AnchorCalculator",
    "AnchorPoint",
    "DocumentState",
    "DocumentSurface",
    "LayoutProvider",
    "MonospaceLayout",
    "Rect",
    "SelectionRange",
    "SelectionState",
    "SelectionTracker",
    "TextChange",
]
