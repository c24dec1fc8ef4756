"""ComponentHandling mixin: room components and room ids."""
import logging
from typing import List

from sfstream.parser.events import ComponentEvent, RoomIdEvent, TextEvent

from .windows import StyledLine, TextSegment

logger = logging.getLogger(__name__)

ROOM_COMPONENT_PREFIX = "room "


class ComponentHandling:
    """Mixin keeping `game.room_components` in step with component events.

    The server always sends a component's full value, so each change
    replaces that component's lines rather than appending.
    """

    def _reset_room(self):
        self.game.room_components.clear()
        self.game.current_room_component = None
        self.game.room_dirty = True
        self.previous_room_components.clear()
        logger.debug("Room stream pushed, cleared all room components")

    def _on_component(self, event: ComponentEvent):
        if not event.id.startswith(ROOM_COMPONENT_PREFIX):
            logger.debug(f"Ignoring non-room component: {event.id}")
            return
        if self.discard_current_stream:
            logger.debug(f"Skipping room component {event.id}, no room window")
            return

        self.chunk_has_silent_updates = True
        if self.previous_room_components.get(event.id) == event.value:
            return
        self.previous_room_components[event.id] = event.value

        lines = self.game.room_components.setdefault(event.id, [])
        lines.clear()
        self.game.current_room_component = event.id
        logger.debug(f"Replacing room component {event.id} ({len(event.value)} chars)")

        if event.value.strip():
            segments = self._parse_fragment(event.value)
            if segments:
                lines.append(StyledLine(segments))
                self.game.room_dirty = True

    def _parse_fragment(self, value: str) -> List[TextSegment]:
        """Parse a component body on a clean parser state, keeping only its text."""
        with self.parser.isolated():
            events = self.parser.parse_line(value)
        return [
            TextSegment(text=e.content, fg=e.fg, bg=e.bg, bold=e.bold, span_type=e.span_type, link=e.link)
            for e in events if isinstance(e, TextEvent)
        ]

    def _on_room_id(self, event: RoomIdEvent):
        self.game.nav_room_id = event.id
        self.game.room_dirty = True
        logger.debug(f"Room id updated: {event.id}")
