"""Parsed events emitted by the stream parser.

Every event is a frozen dataclass; once emitted it is never mutated.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class SpanType(Enum):
    """Semantic type of a text run, used for highlight priority."""
    NORMAL = "normal"
    LINK = "link"
    MONSTERBOLD = "monsterbold"
    SPELL = "spell"
    SPEECH = "speech"


class EventAction(Enum):
    SET = "set"
    CLEAR = "clear"
    INCREMENT = "increment"


@dataclass(frozen=True)
class LinkData:
    """Metadata of a clickable `<a>` or `<d>` span."""
    exist_id: str
    noun: str
    text: str = ""
    coord: Optional[str] = None


DIRECT_COMMAND_ID = "_direct_"


class ParsedEvent:
    """Base class for everything `StreamParser.parse_line` returns."""
    __slots__ = ()


@dataclass(frozen=True)
class TextEvent(ParsedEvent):
    content: str
    stream: str = "main"
    fg: Optional[str] = None
    bg: Optional[str] = None
    bold: bool = False
    span_type: SpanType = SpanType.NORMAL
    link: Optional[LinkData] = None


@dataclass(frozen=True)
class PromptEvent(ParsedEvent):
    time: str
    text: str


@dataclass(frozen=True)
class SpellEvent(ParsedEvent):
    text: str


@dataclass(frozen=True)
class LeftHandEvent(ParsedEvent):
    item: str
    link: Optional[LinkData] = None


@dataclass(frozen=True)
class RightHandEvent(ParsedEvent):
    item: str
    link: Optional[LinkData] = None


@dataclass(frozen=True)
class SpellHandEvent(ParsedEvent):
    spell: str


@dataclass(frozen=True)
class RoundTimeEvent(ParsedEvent):
    value: int


@dataclass(frozen=True)
class CastTimeEvent(ParsedEvent):
    value: int


@dataclass(frozen=True)
class ProgressBarEvent(ParsedEvent):
    id: str
    value: int
    max: int
    text: str


@dataclass(frozen=True)
class LabelEvent(ParsedEvent):
    id: str
    value: str


@dataclass(frozen=True)
class CompassEvent(ParsedEvent):
    directions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ComponentEvent(ParsedEvent):
    id: str
    value: str


@dataclass(frozen=True)
class StreamPushEvent(ParsedEvent):
    id: str


@dataclass(frozen=True)
class StreamPopEvent(ParsedEvent):
    pass


@dataclass(frozen=True)
class ClearStreamEvent(ParsedEvent):
    id: str


@dataclass(frozen=True)
class ClearDialogDataEvent(ParsedEvent):
    id: str


@dataclass(frozen=True)
class RoomIdEvent(ParsedEvent):
    id: str


@dataclass(frozen=True)
class StreamWindowEvent(ParsedEvent):
    id: str
    subtitle: Optional[str] = None


@dataclass(frozen=True)
class BloodPointsEvent(ParsedEvent):
    value: int


@dataclass(frozen=True)
class InjuryImageEvent(ParsedEvent):
    # name == id means the body part was cleared
    id: str
    name: str


@dataclass(frozen=True)
class StatusIndicatorEvent(ParsedEvent):
    id: str
    active: bool


@dataclass(frozen=True)
class ActiveEffectEvent(ParsedEvent):
    category: str
    id: str
    value: int
    text: str
    time: str


@dataclass(frozen=True)
class ClearActiveEffectsEvent(ParsedEvent):
    category: str


@dataclass(frozen=True)
class MenuResponseEvent(ParsedEvent):
    id: str
    items: Tuple[Tuple[str, Optional[str]], ...] = field(default_factory=tuple)

    @property
    def coords(self) -> Tuple[str, ...]:
        return tuple(coord for coord, _ in self.items)


@dataclass(frozen=True)
class PatternEvent(ParsedEvent):
    """Secondary signal found in plain text by the event pattern matcher."""
    event_type: str
    action: EventAction
    duration: int


@dataclass(frozen=True)
class LaunchUrlEvent(ParsedEvent):
    url: str


@dataclass(frozen=True)
class SwitchQuickBarEvent(ParsedEvent):
    id: str
