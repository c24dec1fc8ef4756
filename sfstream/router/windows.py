"""Window and widget data model written by the router.

Pure data, no rendering. A frontend looks windows up by name and reads the
typed content slot.
"""
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, List, Optional

from sfstream.parser.events import LinkData, SpanType

DEFAULT_MAX_LINES = 1000


class WidgetType(Enum):
    TEXT = "text"
    ROOM = "room"
    INVENTORY = "inventory"
    SPELLS = "spells"
    PROGRESS = "progress"
    COUNTDOWN = "countdown"
    COMPASS = "compass"
    INDICATOR = "indicator"
    INJURY_DOLL = "injury_doll"
    HAND = "hand"
    ACTIVE_EFFECTS = "active_effects"
    TARGETS = "targets"
    PLAYERS = "players"


@dataclass(frozen=True)
class TextSegment:
    text: str
    fg: Optional[str] = None
    bg: Optional[str] = None
    bold: bool = False
    span_type: SpanType = SpanType.NORMAL
    link: Optional[LinkData] = None


@dataclass
class StyledLine:
    segments: List[TextSegment] = field(default_factory=list)

    @classmethod
    def from_text(cls, text: str) -> "StyledLine":
        return cls([TextSegment(text)])

    @property
    def text(self) -> str:
        return "".join(seg.text for seg in self.segments)


@dataclass
class TextContent:
    """Scrollback of styled lines, oldest dropped past `max_lines`.

    `generation` increments on every added line so a frontend can see
    changes even once the line count stays pinned at the maximum.
    """
    max_lines: int = DEFAULT_MAX_LINES
    title: str = ""
    lines: Deque[StyledLine] = field(default_factory=deque)
    generation: int = 0

    def add_line(self, line: StyledLine):
        self.lines.append(line)
        while len(self.lines) > self.max_lines:
            self.lines.popleft()
        self.generation += 1

    def clear(self):
        self.lines.clear()

    def plain_lines(self) -> List[str]:
        return [line.text for line in self.lines]


@dataclass
class ProgressData:
    value: int = 0
    max: int = 100
    label: str = ""


@dataclass
class CountdownData:
    end_time: int = 0
    label: str = ""


@dataclass
class CompassData:
    directions: List[str] = field(default_factory=list)


@dataclass
class InjuryDollData:
    """body part -> level; 0 none, 1-3 wounds, 4-6 scars."""
    injuries: Dict[str, int] = field(default_factory=dict)

    def set_injury(self, body_part: str, level: int):
        self.injuries[body_part] = min(level, 6)

    def get_injury(self, body_part: str) -> int:
        return self.injuries.get(body_part, 0)

    def clear_all(self):
        self.injuries.clear()


@dataclass
class IndicatorData:
    status: str = ""


@dataclass
class HandData:
    item: Optional[str] = None
    link: Optional[LinkData] = None


@dataclass
class ActiveEffect:
    id: str
    text: str
    value: int
    time: str


@dataclass
class ActiveEffectsContent:
    category: str = ""
    effects: List[ActiveEffect] = field(default_factory=list)

    def upsert(self, effect: ActiveEffect):
        for i, existing in enumerate(self.effects):
            if existing.id == effect.id:
                self.effects[i] = effect
                return
        self.effects.append(effect)


@dataclass
class TargetsData:
    text: str = ""


@dataclass
class PlayersData:
    text: str = ""


def _content_for(widget_type: WidgetType, name: str, max_lines: int) -> Any:
    if widget_type in (WidgetType.TEXT, WidgetType.ROOM, WidgetType.INVENTORY, WidgetType.SPELLS):
        return TextContent(max_lines=max_lines, title=name)
    if widget_type is WidgetType.ACTIVE_EFFECTS:
        return ActiveEffectsContent()
    return {
        WidgetType.PROGRESS: ProgressData,
        WidgetType.COUNTDOWN: CountdownData,
        WidgetType.COMPASS: CompassData,
        WidgetType.INDICATOR: IndicatorData,
        WidgetType.INJURY_DOLL: InjuryDollData,
        WidgetType.HAND: HandData,
        WidgetType.TARGETS: TargetsData,
        WidgetType.PLAYERS: PlayersData,
    }[widget_type]()


@dataclass
class WindowState:
    name: str
    widget_type: WidgetType
    content: Any

    @classmethod
    def new(cls, name: str, widget_type: WidgetType = WidgetType.TEXT,
            max_lines: int = DEFAULT_MAX_LINES) -> "WindowState":
        return cls(name=name, widget_type=widget_type, content=_content_for(widget_type, name, max_lines))


class UiState:
    """Window lookup keyed by name, in insertion order."""

    def __init__(self):
        self.windows: Dict[str, WindowState] = {}

    def get_window(self, name: str) -> Optional[WindowState]:
        return self.windows.get(name)

    def get_window_of_type(self, name: str, widget_type: WidgetType) -> Optional[WindowState]:
        window = self.windows.get(name)
        if window is not None and window.widget_type is widget_type:
            return window
        return None

    def set_window(self, window: WindowState):
        self.windows[window.name] = window

    def add_window(self, name: str, widget_type: WidgetType = WidgetType.TEXT,
                   max_lines: int = DEFAULT_MAX_LINES) -> WindowState:
        window = WindowState.new(name, widget_type, max_lines)
        self.set_window(window)
        return window

    def remove_window(self, name: str) -> Optional[WindowState]:
        return self.windows.pop(name, None)

    def windows_of_type(self, widget_type: WidgetType) -> List[WindowState]:
        return [w for w in self.windows.values() if w.widget_type is widget_type]

    def has_window_of_type(self, widget_type: WidgetType) -> bool:
        return any(w.widget_type is widget_type for w in self.windows.values())

    def first_of_type(self, widget_type: WidgetType) -> Optional[WindowState]:
        for window in self.windows.values():
            if window.widget_type is widget_type:
                return window
        return None
