"""Stream router package: parsed events to window and game state."""
from .core import StreamRouter
from .game_state import GameState, StatusInfo, Vitals
from .streams import STREAM_WINDOWS, map_stream_to_window
from .windows import StyledLine, TextContent, TextSegment, UiState, WidgetType, WindowState

__all__ = [
    "StreamRouter", "GameState", "StatusInfo", "Vitals", "STREAM_WINDOWS", "map_stream_to_window",
    "StyledLine", "TextContent", "TextSegment", "UiState", "WidgetType", "WindowState",
]
