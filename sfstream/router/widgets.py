"""WidgetUpdates mixin: typed events that only mutate game state and widgets."""
import logging
import re
from typing import Optional

from sfstream.parser.events import (
    ActiveEffectEvent, BloodPointsEvent, CastTimeEvent, ClearActiveEffectsEvent,
    ClearDialogDataEvent, CompassEvent, EventAction, InjuryImageEvent, LabelEvent, LeftHandEvent,
    LinkData, PatternEvent, ProgressBarEvent, RightHandEvent, RoundTimeEvent, SpellEvent,
    SpellHandEvent, StatusIndicatorEvent, SwitchQuickBarEvent,
)

from .windows import ActiveEffect, TextContent, WidgetType

logger = logging.getLogger(__name__)

VITALS = ("health", "mana", "stamina", "spirit")

# active effect category -> window name
EFFECT_WINDOWS = {
    "Buffs": "buffs",
    "Debuffs": "debuffs",
    "Cooldowns": "cooldowns",
    "ActiveSpells": "active_spells",
}

_BLOOD_POINTS_LABEL_RE = re.compile(r'([0-9]+)')


def injury_level(body_part: str, name: str) -> int:
    """InjuryN -> N, ScarN -> N + 3, a name equal to the body part (cleared) -> 0."""
    if name == body_part:
        return 0
    for prefix, offset in (("Injury", 0), ("Scar", 3)):
        if name.startswith(prefix) and name[-1:] in ("1", "2", "3"):
            return int(name[-1]) + offset
    return 0


def vital_percent(value: int, maximum: int) -> int:
    if maximum == 0:
        return 0
    return value * 100 // maximum


class WidgetUpdates:
    """Mixin for pure state-mutation events. A missing widget is never an error."""

    # --- Countdowns ---

    def _on_round_time(self, event: RoundTimeEvent):
        end = event.value - self.server_time_offset
        self.game.roundtime_end = end
        self._set_countdown("roundtime", end)

    def _on_cast_time(self, event: CastTimeEvent):
        end = event.value - self.server_time_offset
        self.game.casttime_end = end
        self._set_countdown("casttime", end)

    def _set_countdown(self, name: str, end: int):
        window = self.ui.get_window_of_type(name, WidgetType.COUNTDOWN)
        if window is not None:
            window.content.end_time = end

    # --- Hands and spell ---

    def _on_left_hand(self, event: LeftHandEvent):
        self.chunk_has_silent_updates = True
        self.game.left_hand = event.item or None
        self._set_hand("left_hand", self.game.left_hand, event.link)

    def _on_right_hand(self, event: RightHandEvent):
        self.chunk_has_silent_updates = True
        self.game.right_hand = event.item or None
        self._set_hand("right_hand", self.game.right_hand, event.link)

    def _on_spell_hand(self, event: SpellHandEvent):
        self.chunk_has_silent_updates = True
        self.game.spell = event.spell or None
        window = self.ui.get_window_of_type("spell_hand", WidgetType.HAND)
        if window is not None:
            window.content.item = self.game.spell
        logger.debug(f"Updated spell hand: {self.game.spell}")

    def _on_spell(self, event: SpellEvent):
        self.chunk_has_silent_updates = True
        self.game.spell = event.text or None

    def _set_hand(self, name: str, item: Optional[str], link: Optional[LinkData]):
        window = self.ui.get_window_of_type(name, WidgetType.HAND)
        if window is not None:
            window.content.item = item
            window.content.link = link

    # --- Panels ---

    def _on_compass(self, event: CompassEvent):
        self.chunk_has_silent_updates = True
        self.game.compass_dirs = list(event.directions)
        window = self.ui.first_of_type(WidgetType.COMPASS)
        if window is not None:
            window.content.directions = list(event.directions)

    def _on_injury_image(self, event: InjuryImageEvent):
        self.chunk_has_silent_updates = True
        level = injury_level(event.id, event.name)
        self.game.injuries[event.id] = level
        window = self.ui.first_of_type(WidgetType.INJURY_DOLL)
        if window is not None:
            window.content.set_injury(event.id, level)
            logger.debug(f"Updated injury: {event.id} to level {level} ({event.name})")

    def _on_progress_bar(self, event: ProgressBarEvent):
        self.chunk_has_silent_updates = True
        window = self.ui.get_window_of_type(event.id, WidgetType.PROGRESS)
        if window is not None:
            window.content.value = event.value
            window.content.max = event.max
            window.content.label = event.text
        if event.id in VITALS:
            setattr(self.game.vitals, event.id, vital_percent(event.value, event.max))

    def _on_status_indicator(self, event: StatusIndicatorEvent):
        self.chunk_has_silent_updates = True
        self.game.status.set_flag(event.id, event.active)
        for name in (event.id, f"icon_{event.id}", f"indicator_{event.id}"):
            window = self.ui.get_window_of_type(name, WidgetType.INDICATOR)
            if window is not None:
                window.content.status = event.id if event.active else ""
                break

    def _on_active_effect(self, event: ActiveEffectEvent):
        self.chunk_has_silent_updates = True
        window = self._effects_window(event.category)
        if window is not None:
            window.content.category = event.category
            window.content.upsert(ActiveEffect(id=event.id, text=event.text, value=event.value, time=event.time))

    def _on_clear_active_effects(self, event: ClearActiveEffectsEvent):
        self.chunk_has_silent_updates = True
        window = self._effects_window(event.category)
        if window is not None:
            window.content.effects.clear()

    def _effects_window(self, category: str):
        name = EFFECT_WINDOWS.get(category)
        if name is None:
            logger.debug(f"Ignoring unknown active effect category: {category}")
            return None
        return self.ui.get_window_of_type(name, WidgetType.ACTIVE_EFFECTS)

    def _on_clear_dialog_data(self, event: ClearDialogDataEvent):
        window = self.ui.get_window(event.id)
        if window is not None and isinstance(window.content, TextContent):
            window.content.clear()

    def _on_label(self, event: LabelEvent):
        self.chunk_has_silent_updates = True
        self.game.labels[event.id] = event.value
        if event.id == "lblBPs":
            m = _BLOOD_POINTS_LABEL_RE.search(event.value)
            if m:
                self.game.blood_points = int(m.group(1))
        window = self.ui.get_window_of_type(event.id, WidgetType.PROGRESS)
        if window is not None:
            window.content.label = event.value

    def _on_blood_points(self, event: BloodPointsEvent):
        self.chunk_has_silent_updates = True
        self.game.blood_points = event.value

    def _on_switch_quickbar(self, event: SwitchQuickBarEvent):
        self.chunk_has_silent_updates = True
        self.game.active_quickbar = event.id

    # --- Pattern events ---

    def _on_pattern(self, event: PatternEvent):
        now = self._clock()
        timers = self.game.timers
        if event.action is EventAction.CLEAR:
            timers.pop(event.event_type, None)
            self.game.status.set_flag(event.event_type, False)
            logger.debug(f"Cleared {event.event_type}")
            return
        if event.action is EventAction.INCREMENT and event.event_type in timers:
            timers[event.event_type] = max(timers[event.event_type], now) + event.duration
        else:
            timers[event.event_type] = now + event.duration
        self.game.status.set_flag(event.event_type, True)
        logger.debug(f"{event.event_type} timer ends in {timers[event.event_type] - now:.0f}s")
