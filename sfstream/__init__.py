"""sfstream: parser and router for the game server's tag-soup text stream."""
from .parser import StreamParser
from .patterns import EventMatcher, EventPattern
from .router import GameState, StreamRouter, UiState, WidgetType
from .session import Session

__all__ = [
    "StreamParser", "EventMatcher", "EventPattern", "GameState", "StreamRouter",
    "UiState", "WidgetType", "Session",
]
