"""Scalar game state written directly by the router."""
from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional

from .windows import StyledLine


@dataclass
class StatusInfo:
    standing: bool = False
    kneeling: bool = False
    sitting: bool = False
    prone: bool = False
    stunned: bool = False
    bleeding: bool = False
    hidden: bool = False
    invisible: bool = False
    webbed: bool = False
    joined: bool = False
    dead: bool = False
    poisoned: bool = False
    diseased: bool = False

    @classmethod
    def flag_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def set_flag(self, name: str, value: bool) -> bool:
        """Set a known flag; returns False for names that are not status flags."""
        if name not in self.flag_names():
            return False
        setattr(self, name, value)
        return True


@dataclass
class Vitals:
    health: int = 100
    mana: int = 100
    stamina: int = 100
    spirit: int = 100


@dataclass
class GameState:
    vitals: Vitals = field(default_factory=Vitals)
    status: StatusInfo = field(default_factory=StatusInfo)

    left_hand: Optional[str] = None
    right_hand: Optional[str] = None
    spell: Optional[str] = None

    # local wall-clock end times
    roundtime_end: Optional[int] = None
    casttime_end: Optional[int] = None

    compass_dirs: List[str] = field(default_factory=list)
    injuries: Dict[str, int] = field(default_factory=dict)
    last_prompt: str = ">"

    # pattern event countdowns: event type -> local end time
    timers: Dict[str, float] = field(default_factory=dict)
    blood_points: Optional[int] = None
    labels: Dict[str, str] = field(default_factory=dict)
    active_quickbar: Optional[str] = None

    nav_room_id: Optional[str] = None
    lich_room_id: Optional[str] = None
    room_subtitle: Optional[str] = None
    room_components: Dict[str, List[StyledLine]] = field(default_factory=dict)
    current_room_component: Optional[str] = None
    room_dirty: bool = False

    def in_roundtime(self, now: float) -> bool:
        return self.roundtime_end is not None and now < self.roundtime_end

    def in_casttime(self, now: float) -> bool:
        return self.casttime_end is not None and now < self.casttime_end

    def timer_remaining(self, event_type: str, now: float) -> float:
        end = self.timers.get(event_type)
        if end is None:
            return 0
        return max(end - now, 0)
