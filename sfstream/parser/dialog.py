"""DialogDataHandler mixin: dialogData panels and progress bars."""
import logging
import re
from typing import List, Optional

from .events import (
    ActiveEffectEvent, BloodPointsEvent, ClearActiveEffectsEvent, ClearDialogDataEvent,
    InjuryImageEvent, ParsedEvent, ProgressBarEvent, StatusIndicatorEvent,
)
from .utils import decode_entities, extract_attribute, first_number, last_number, parse_int

logger = logging.getLogger(__name__)

BODY_PARTS = (
    "head", "neck", "chest", "abdomen", "back",
    "leftArm", "rightArm", "leftHand", "rightHand",
    "leftLeg", "rightLeg", "leftEye", "rightEye", "nsys",
)

# dialogData id -> active effect category
EFFECT_CATEGORIES = {
    "Active Spells": "ActiveSpells",
    "Buffs": "Buffs",
    "Debuffs": "Debuffs",
    "Cooldowns": "Cooldowns",
}

_BLOOD_POINTS_RE = re.compile(r'Blood Points:\s*([0-9]+)')


def _inner_tags(tag: str, name: str) -> List[str]:
    """Every self-closing `<name .../>` inside a dialogData element."""
    found = []
    needle = f"<{name} "
    pos = tag.find(needle)
    while pos != -1:
        end = tag.find("/>", pos)
        if end == -1:
            break
        found.append(tag[pos:end + 2])
        pos = tag.find(needle, end + 2)
    return found


def parse_progress_bar(tag: str) -> Optional[ProgressBarEvent]:
    """<progressBar id='mana' value='94' text='mana 386/407' />

    `value` is a percentage; the real current/max come from the text around
    its rightmost slash. Without a slash the bar is (percentage, 100).
    """
    bar_id = extract_attribute(tag, "id")
    if bar_id is None:
        return None
    percentage = parse_int(extract_attribute(tag, "value"), 0)
    text = decode_entities(extract_attribute(tag, "text") or "")
    slash = text.rfind("/")
    if slash == -1:
        return ProgressBarEvent(id=bar_id, value=percentage, max=100, text=text)
    current = last_number(text[:slash])
    maximum = first_number(text[slash + 1:])
    return ProgressBarEvent(
        id=bar_id,
        value=current if current is not None else percentage,
        max=maximum if maximum is not None else 100,
        text=text,
    )


class DialogDataHandler:
    """Mixin fanning one dialogData element out into typed events."""

    def _handle_progress_bar(self, tag: str, events: List[ParsedEvent]):
        event = parse_progress_bar(tag)
        if event is not None:
            events.append(event)

    def _handle_dialog_data(self, tag: str, events: List[ParsedEvent]):
        # attributes of the panel itself, not of the tags inside it
        open_tag = tag[:tag.find(">") + 1]
        dialog_id = extract_attribute(open_tag, "id")
        if dialog_id is None:
            self._embedded_progress_bars(tag, events)
            return
        cleared = extract_attribute(open_tag, "clear") == "t"

        if cleared and dialog_id != "injuries" and dialog_id not in EFFECT_CATEGORIES:
            logger.debug(f"Clearing dialogData window: {dialog_id}")
            events.append(ClearDialogDataEvent(id=dialog_id))

        if dialog_id.startswith("Icon"):
            value = extract_attribute(open_tag, "value")
            if value is not None:
                events.append(StatusIndicatorEvent(id=dialog_id[len("Icon"):].lower(),
                                                   active=value == "active"))

        if dialog_id == "injuries":
            self._injuries(tag, cleared, events)
            return

        if dialog_id in EFFECT_CATEGORIES:
            self._active_effects(tag, EFFECT_CATEGORIES[dialog_id], cleared, events)
            return

        if dialog_id == "BetrayerPanel":
            m = _BLOOD_POINTS_RE.search(tag)
            if m:
                events.append(BloodPointsEvent(value=int(m.group(1))))

        self._embedded_progress_bars(tag, events)

    def _embedded_progress_bars(self, tag: str, events: List[ParsedEvent]):
        # minivitals and friends carry ordinary progress bars
        for bar in _inner_tags(tag, "progressBar"):
            self._handle_progress_bar(bar, events)

    def _injuries(self, tag: str, cleared: bool, events: List[ParsedEvent]):
        if cleared:
            logger.debug("Clearing all injuries (clear='t')")
            for part in BODY_PARTS:
                events.append(InjuryImageEvent(id=part, name=part))
            return
        count = 0
        for image in _inner_tags(tag, "image"):
            part = extract_attribute(image, "id")
            name = extract_attribute(image, "name")
            if part is not None and name is not None:
                events.append(InjuryImageEvent(id=part, name=name))
                count += 1
        logger.debug(f"Parsed {count} injury image(s)")

    def _active_effects(self, tag: str, category: str, cleared: bool, events: List[ParsedEvent]):
        if cleared:
            logger.debug(f"Clearing active effects for category: {category}")
            events.append(ClearActiveEffectsEvent(category=category))
            return
        for bar in _inner_tags(tag, "progressBar"):
            effect_id = extract_attribute(bar, "id")
            value = parse_int(extract_attribute(bar, "value"), None)
            text = extract_attribute(bar, "text")
            time = extract_attribute(bar, "time")
            if effect_id is None or value is None or text is None or time is None:
                continue
            events.append(ActiveEffectEvent(category=category, id=effect_id, value=value,
                                            text=decode_entities(text), time=time))
