"""Tag classification for the stream parser.

Tags are sorted into a `TagKind` once, by name, and the parser dispatches
on the kind. Tags that must be dropped on purpose get `IGNORED`; anything
unrecognised is `UNKNOWN` and is dropped as well.
"""
import re
from enum import Enum, auto
from typing import Dict


class TagKind(Enum):
    PRESET_OPEN = auto()
    PRESET_CLOSE = auto()
    COLOR_OPEN = auto()
    COLOR_CLOSE = auto()
    STYLE = auto()
    BOLD_PUSH = auto()
    BOLD_POP = auto()
    STREAM_PUSH = auto()
    STREAM_POP = auto()
    CLEAR_STREAM = auto()
    PROMPT = auto()
    ROUND_TIME = auto()
    CAST_TIME = auto()
    SPELL = auto()
    SPELL_OPEN = auto()
    SPELL_CLOSE = auto()
    LEFT_HAND = auto()
    RIGHT_HAND = auto()
    COMPASS = auto()
    DIALOG_DATA = auto()
    PROGRESS_BAR = auto()
    LABEL = auto()
    NAV = auto()
    STREAM_WINDOW = auto()
    SWITCH_QUICKBAR = auto()
    COMPONENT = auto()
    DIRECT_OPEN = auto()
    DIRECT_CLOSE = auto()
    LINK_OPEN = auto()
    LINK_CLOSE = auto()
    MENU_OPEN = auto()
    MENU_ITEM = auto()
    MENU_CLOSE = auto()
    LAUNCH_URL = auto()
    INV_OPEN = auto()
    INV_CLOSE = auto()
    IGNORED = auto()
    UNKNOWN = auto()


# Tags matched as a unit, open tag through the close tag of the same name
PAIRED_TAGS = ("prompt", "spell", "left", "right", "compass", "dialogData", "component", "compDef")

OPEN_TAGS: Dict[str, TagKind] = {
    "preset": TagKind.PRESET_OPEN,
    "color": TagKind.COLOR_OPEN,
    "style": TagKind.STYLE,
    "pushBold": TagKind.BOLD_PUSH,
    "b": TagKind.BOLD_PUSH,
    "popBold": TagKind.BOLD_POP,
    "pushStream": TagKind.STREAM_PUSH,
    "popStream": TagKind.STREAM_POP,
    "clearStream": TagKind.CLEAR_STREAM,
    "prompt": TagKind.PROMPT,
    "roundTime": TagKind.ROUND_TIME,
    "castTime": TagKind.CAST_TIME,
    "spell": TagKind.SPELL,
    "left": TagKind.LEFT_HAND,
    "right": TagKind.RIGHT_HAND,
    "compass": TagKind.COMPASS,
    "dialogData": TagKind.DIALOG_DATA,
    "progressBar": TagKind.PROGRESS_BAR,
    "label": TagKind.LABEL,
    "nav": TagKind.NAV,
    "streamWindow": TagKind.STREAM_WINDOW,
    "switchQuickBar": TagKind.SWITCH_QUICKBAR,
    "component": TagKind.COMPONENT,
    "compDef": TagKind.COMPONENT,
    "d": TagKind.DIRECT_OPEN,
    "a": TagKind.LINK_OPEN,
    "menu": TagKind.MENU_OPEN,
    "mi": TagKind.MENU_ITEM,
    "LaunchURL": TagKind.LAUNCH_URL,
    "inv": TagKind.INV_OPEN,
    # inventory window chrome, never rendered
    "dropDownBox": TagKind.IGNORED,
    "skin": TagKind.IGNORED,
    "clearContainer": TagKind.IGNORED,
    "container": TagKind.IGNORED,
    "exposeContainer": TagKind.IGNORED,
}

CLOSE_TAGS: Dict[str, TagKind] = {
    "preset": TagKind.PRESET_CLOSE,
    "color": TagKind.COLOR_CLOSE,
    "b": TagKind.BOLD_POP,
    "component": TagKind.STREAM_POP,
    "compDef": TagKind.IGNORED,
    "spell": TagKind.SPELL_CLOSE,
    "d": TagKind.DIRECT_CLOSE,
    "a": TagKind.LINK_CLOSE,
    "menu": TagKind.MENU_CLOSE,
    "inv": TagKind.INV_CLOSE,
}

# Kinds whose handling changes the presentation stacks; pending text is
# flushed before them so it keeps the style it was written in.
RESTYLING_KINDS = frozenset({
    TagKind.PRESET_OPEN, TagKind.PRESET_CLOSE,
    TagKind.COLOR_OPEN, TagKind.COLOR_CLOSE,
    TagKind.STYLE,
    TagKind.BOLD_PUSH, TagKind.BOLD_POP,
    TagKind.SPELL_OPEN, TagKind.SPELL_CLOSE,
    TagKind.DIRECT_OPEN, TagKind.DIRECT_CLOSE,
    TagKind.LINK_OPEN, TagKind.LINK_CLOSE,
})

# Stream switches and prompts also flush so events keep document order.
FLUSHING_KINDS = RESTYLING_KINDS | {
    TagKind.STREAM_PUSH, TagKind.STREAM_POP, TagKind.STREAM_WINDOW,
    TagKind.CLEAR_STREAM, TagKind.PROMPT, TagKind.INV_OPEN,
}

_TAG_NAME_RE = re.compile(r'<(/?)([A-Za-z][\w.-]*)')


def tag_name(tag: str):
    """Return (is_close, name) for a raw tag, or None when it is not a tag."""
    m = _TAG_NAME_RE.match(tag)
    if not m:
        return None
    return bool(m.group(1)), m.group(2)


def classify_tag(tag: str) -> TagKind:
    """Classify a raw tag (or a whole paired element) into a TagKind."""
    parsed = tag_name(tag)
    if parsed is None:
        return TagKind.UNKNOWN
    is_close, name = parsed
    if is_close:
        return CLOSE_TAGS.get(name, TagKind.UNKNOWN)
    kind = OPEN_TAGS.get(name, TagKind.UNKNOWN)
    if kind is TagKind.SPELL and f"</{name}>" not in tag:
        return TagKind.SPELL_OPEN
    if kind is TagKind.COMPONENT and f"</{name}>" not in tag:
        # a lone component open carries nothing; compDef opens are dropped on purpose
        return TagKind.IGNORED if name == "compDef" else TagKind.UNKNOWN
    return kind


def looks_like_tag(text: str) -> bool:
    """True when `text` starts with `<name` or `</name`."""
    return _TAG_NAME_RE.match(text) is not None


def find_paired_open(text: str, name: str, start: int = 0) -> int:
    """Index of the next `<name` that is a whole tag name, or -1."""
    needle = f"<{name}"
    pos = text.find(needle, start)
    while pos != -1:
        after = pos + len(needle)
        if after >= len(text) or text[after] in " \t>/":
            return pos
        pos = text.find(needle, after)
    return -1
