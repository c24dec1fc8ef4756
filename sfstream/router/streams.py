"""StreamHandling mixin: stream switches, prompts, text lines and buffered streams."""
import logging
import re
from typing import List, Optional

from sfstream.parser.events import (
    ClearStreamEvent, PromptEvent, SpanType, StreamPopEvent, StreamPushEvent,
    StreamWindowEvent, TextEvent,
)

from .windows import (
    PlayersData, StyledLine, TargetsData, TextContent, TextSegment, WidgetType,
)

logger = logging.getLogger(__name__)

STREAM_WINDOWS = {
    "main": "main",
    "room": "room",
    "inv": "inventory",
    "thoughts": "thoughts",
    "speech": "speech",
    "announcements": "announcements",
    "loot": "loot",
    "death": "death",
    "logons": "logons",
    "familiar": "familiar",
    "ambients": "ambients",
    "bounty": "bounty",
    "Spells": "spells",
    "combat": "targets",
    "playerlist": "players",
}

# Streams dropped outright when their window is missing; others fall back to main
DISCARD_IF_NO_WINDOW = frozenset({"spell", "Spells", "bounty", "room"})

# Buffered streams and the widget type that must exist to receive them
BUFFERED_STREAMS = {
    "inv": WidgetType.INVENTORY,
    "combat": WidgetType.TARGETS,
    "playerlist": WidgetType.PLAYERS,
}

_DIGITS_RE = re.compile(r'[0-9]+')


def map_stream_to_window(stream: str) -> str:
    return STREAM_WINDOWS.get(stream, "main")


def extract_lich_room_id(content: str) -> Optional[str]:
    """Room id from a room title like "[Emberthorn Refuge, Bowery - 33711]"."""
    if '[' not in content:
        return None
    dash = content.rfind(" - ")
    if dash == -1:
        return None
    close = content.find("]", dash)
    if close == -1:
        return None
    candidate = content[dash + 3:close].strip()
    return candidate if _DIGITS_RE.fullmatch(candidate) else None


class StreamHandling:
    """Mixin routing styled text to windows per the current stream."""

    # --- Event handlers ---

    def _on_stream_push(self, event: StreamPushEvent):
        self.flush_current_stream()
        self.current_stream = event.id
        window_name = map_stream_to_window(event.id)
        if event.id in DISCARD_IF_NO_WINDOW and self.ui.get_window(window_name) is None:
            self.discard_current_stream = True
            logger.debug(f"No window for stream '{event.id}' (maps to '{window_name}'), discarding content")
        else:
            self.discard_current_stream = False

        if event.id == "room" and not self.discard_current_stream:
            self._reset_room()
        elif event.id == "inv":
            self.inventory_buffer.clear()
        elif event.id == "combat":
            self.combat_buffer.clear()
        elif event.id == "playerlist":
            self.playerlist_buffer.clear()

    def _on_stream_pop(self, event: StreamPopEvent):
        self.flush_current_stream()
        if self.current_stream == "inv":
            self.flush_inventory_buffer()
        elif self.current_stream == "combat":
            self.flush_combat_buffer()
        elif self.current_stream == "playerlist":
            self.flush_playerlist_buffer()

        window_name = map_stream_to_window(self.current_stream)
        if window_name != "main" and self.ui.get_window(window_name) is not None:
            self.chunk_has_silent_updates = True
            logger.debug(f"Stream '{self.current_stream}' routed to '{window_name}', next prompt may be skipped")

        self.discard_current_stream = False
        self.current_stream = "main"

    def _on_stream_window(self, event: StreamWindowEvent):
        # streamWindow acts like pushStream
        self.flush_current_stream()
        self.current_stream = event.id
        if event.id == "inv":
            has_target = self.ui.has_window_of_type(WidgetType.INVENTORY)
        elif event.id == "Spells":
            has_target = self.ui.has_window_of_type(WidgetType.SPELLS)
        else:
            has_target = self.ui.get_window(map_stream_to_window(event.id)) is not None
        self.discard_current_stream = not has_target
        if not has_target:
            logger.debug(f"No window for streamWindow '{event.id}', discarding content")

        if event.id == "room" and has_target and event.subtitle is not None:
            subtitle = event.subtitle
            while subtitle.startswith(" - "):
                subtitle = subtitle[3:]
            self.game.room_subtitle = subtitle
            self.game.room_dirty = True

    def _on_clear_stream(self, event: ClearStreamEvent):
        # unmapped ids have no window of their own; never clear main for them
        if event.id not in STREAM_WINDOWS:
            logger.debug(f"Ignoring clearStream for unmapped stream '{event.id}'")
            return
        window = self.ui.get_window(STREAM_WINDOWS[event.id])
        if window is not None and isinstance(window.content, TextContent):
            window.content.clear()
            logger.debug(f"Cleared window '{window.name}' for stream '{event.id}'")

    def _on_prompt(self, event: PromptEvent):
        self.flush_current_stream()

        if self.chunk_has_silent_updates and not self.chunk_has_main_text:
            logger.debug(f"Skipping prompt '{event.text}', chunk had only silent updates")
        elif event.text.strip():
            self.game.last_prompt = event.text
            self.current_stream = "main"
            for ch in event.text:
                self._segments.append(TextSegment(ch, fg=self.prompt_color(ch)))
            self.flush_current_stream()

        server_time = _parse_time(event.time)
        if server_time is not None:
            self.server_time_offset = server_time - int(self._clock())

        self.chunk_has_main_text = False
        self.chunk_has_silent_updates = False
        self.discard_current_stream = False

    def _on_text(self, event: TextEvent):
        if self.current_stream == "main" and event.content.strip():
            self.chunk_has_main_text = True

        if self.discard_current_stream:
            logger.debug(f"Discarding text from stream '{self.current_stream}': {event.content[:50]!r}")
            return

        if self.current_stream == "main":
            room_id = extract_lich_room_id(event.content)
            if room_id is not None:
                self.game.lich_room_id = room_id
                self.game.room_dirty = True
                logger.debug(f"Extracted Lich room id from room name: {room_id}")

        self._segments.append(TextSegment(
            text=event.content,
            fg=event.fg,
            bg=event.bg,
            bold=event.bold,
            span_type=event.span_type,
            link=event.link,
        ))

    def prompt_color(self, ch: str) -> str:
        return self._prompt_colors.get(ch, self._default_prompt_color)

    # --- Flushing ---

    def flush_current_stream(self):
        """Close the pending line and deliver it to the current stream's destination."""
        if not self._segments:
            return
        segments, self._segments = self._segments, []

        if self.ui.get_window("speech") is None:
            segments = [seg for seg in segments if seg.span_type is not SpanType.SPEECH]
        if not segments:
            return

        if self.current_stream == "room":
            logger.debug("Discarding room stream text, room data arrives as components")
            return

        widget_type = BUFFERED_STREAMS.get(self.current_stream)
        if widget_type is not None:
            self.chunk_has_silent_updates = True
            if not self.ui.has_window_of_type(widget_type):
                logger.debug(f"Discarding '{self.current_stream}' stream content, no {widget_type.value} window")
                return
            self._buffer_for(self.current_stream).append(segments)
            return

        line = StyledLine(segments)
        window_name = map_stream_to_window(self.current_stream)
        window = self.ui.get_window(window_name)
        if window is None and window_name != "main":
            logger.debug(f"Window '{window_name}' missing, routing content to main")
            window = self.ui.get_window("main")
        if window is None:
            return
        if isinstance(window.content, TextContent):
            window.content.add_line(line)
        else:
            logger.debug(f"Window '{window.name}' does not hold text ({window.widget_type.value})")

    def _buffer_for(self, stream: str) -> List[List[TextSegment]]:
        if stream == "inv":
            return self.inventory_buffer
        if stream == "combat":
            return self.combat_buffer
        return self.playerlist_buffer

    def flush_inventory_buffer(self):
        """Replace every inventory window's lines, but only when the listing changed."""
        if not self.inventory_buffer:
            return
        if self.inventory_buffer == self.previous_inventory:
            logger.debug(f"Inventory unchanged, skipping update ({len(self.inventory_buffer)} lines)")
        else:
            windows = self.ui.windows_of_type(WidgetType.INVENTORY)
            for window in windows:
                window.content.clear()
                for segments in self.inventory_buffer:
                    window.content.add_line(StyledLine(list(segments)))
            logger.debug(f"Inventory changed, updated {len(windows)} window(s) "
                         f"with {len(self.inventory_buffer)} lines")
            self.previous_inventory = list(self.inventory_buffer)
        self.inventory_buffer = []

    def flush_combat_buffer(self):
        if not self.combat_buffer:
            return
        text = _concat(self.combat_buffer)
        for window in self.ui.windows_of_type(WidgetType.TARGETS):
            if isinstance(window.content, TargetsData):
                window.content.text = text
        logger.debug(f"Flushed combat buffer: {len(self.combat_buffer)} lines, {len(text)} chars")
        self.combat_buffer = []

    def flush_playerlist_buffer(self):
        if not self.playerlist_buffer:
            return
        text = _concat(self.playerlist_buffer)
        for window in self.ui.windows_of_type(WidgetType.PLAYERS):
            if isinstance(window.content, PlayersData):
                window.content.text = text
        logger.debug(f"Flushed playerlist buffer: {len(self.playerlist_buffer)} lines, {len(text)} chars")
        self.playerlist_buffer = []

    def clear_inventory_cache(self):
        """Forget the last inventory so the next one renders, e.g. after adding a window."""
        self.previous_inventory = []
        logger.debug("Cleared inventory cache")


def _concat(lines: List[List[TextSegment]]) -> str:
    return "".join(seg.text for segments in lines for seg in segments)


def _parse_time(value: str) -> Optional[int]:
    try:
        return int(value.strip())
    except ValueError:
        return None
