"""Stream parser package: server markup lines to typed events."""
from .core import StreamParser
from .events import (
    ActiveEffectEvent, BloodPointsEvent, CastTimeEvent, ClearActiveEffectsEvent,
    ClearDialogDataEvent, ClearStreamEvent, CompassEvent, ComponentEvent, EventAction,
    InjuryImageEvent, LabelEvent, LaunchUrlEvent, LeftHandEvent, LinkData, MenuResponseEvent,
    ParsedEvent, PatternEvent, ProgressBarEvent, PromptEvent, RightHandEvent, RoomIdEvent,
    RoundTimeEvent, SpanType, SpellEvent, SpellHandEvent, StatusIndicatorEvent,
    StreamPopEvent, StreamPushEvent, StreamWindowEvent, SwitchQuickBarEvent, TextEvent,
)
from .state import ColorStyle
from .utils import decode_entities

__all__ = [
    "StreamParser", "ColorStyle", "decode_entities", "SpanType", "EventAction", "LinkData",
    "ParsedEvent", "TextEvent", "PromptEvent", "SpellEvent", "LeftHandEvent", "RightHandEvent",
    "SpellHandEvent", "RoundTimeEvent", "CastTimeEvent", "ProgressBarEvent", "LabelEvent",
    "CompassEvent", "ComponentEvent", "StreamPushEvent", "StreamPopEvent", "ClearStreamEvent",
    "ClearDialogDataEvent", "RoomIdEvent", "StreamWindowEvent", "BloodPointsEvent",
    "InjuryImageEvent", "StatusIndicatorEvent", "ActiveEffectEvent", "ClearActiveEffectsEvent",
    "MenuResponseEvent", "PatternEvent", "LaunchUrlEvent", "SwitchQuickBarEvent",
]
