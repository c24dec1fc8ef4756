"""Session: one parser and one router wired together for a connection."""
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from sfstream.config import DEFAULTS, build_presets, build_prompt_colors
from sfstream.parser import LaunchUrlEvent, MenuResponseEvent, ParsedEvent, StreamParser
from sfstream.patterns import EventMatcher
from sfstream.router import GameState, StreamRouter, UiState, WidgetType

logger = logging.getLogger(__name__)

LAUNCH_URL_BASE = "https://www.play.net"


@dataclass(frozen=True)
class MenuRequest:
    exist_id: str
    noun: str


@dataclass(frozen=True)
class MenuResponse:
    exist_id: str
    noun: str
    items: Tuple[Tuple[str, Optional[str]], ...]


class Session:
    """Feeds raw server text through the parser and router.

    Every complete server line becomes one window line: the router's
    pending line is flushed after each `feed_line`. Text after the last
    newline passed to `feed` is held until more data arrives or `finish`.
    """

    def __init__(self, config: Optional[dict] = None, ui: Optional[UiState] = None,
                 game: Optional[GameState] = None, clock: Callable[[], float] = time.time):
        self.config = config if config is not None else dict(DEFAULTS)
        self.parser = StreamParser(
            presets=build_presets(self.config),
            matcher=EventMatcher.from_config(self.config.get("event_patterns") or {}),
        )
        if ui is None:
            ui = UiState()
            ui.add_window("main", WidgetType.TEXT, self.config.get("main_max_lines", DEFAULTS["main_max_lines"]))
        self.ui = ui
        self.game = game if game is not None else GameState()
        self.router = StreamRouter(
            self.ui, self.game, self.parser,
            prompt_colors=build_prompt_colors(self.config),
            default_prompt_color=self.config.get("default_prompt_color", DEFAULTS["default_prompt_color"]),
            clock=clock,
        )

        self._partial = ""
        self._menu_counter = 0
        self._pending_menus: Dict[str, MenuRequest] = {}
        self.menu_responses: List[MenuResponse] = []
        self.launch_urls: List[str] = []
        self.lines_processed = 0

    def feed(self, data: str) -> List[ParsedEvent]:
        """Process every complete line in `data`; returns the events routed."""
        self._partial += data
        *lines, self._partial = self._partial.split("\n")
        events = []
        for line in lines:
            events.extend(self.feed_line(line))
        return events

    def finish(self) -> List[ParsedEvent]:
        """Process a trailing line that never got its newline."""
        if not self._partial:
            return []
        line, self._partial = self._partial, ""
        return self.feed_line(line)

    def feed_line(self, line: str) -> List[ParsedEvent]:
        events = self.parser.parse_line(line.rstrip("\r"))
        for event in events:
            self.router.handle(event)
            if isinstance(event, MenuResponseEvent):
                self._resolve_menu(event)
            elif isinstance(event, LaunchUrlEvent):
                self.launch_urls.append(LAUNCH_URL_BASE + event.url)
        self.router.flush_current_stream()
        self.lines_processed += 1
        return events

    # --- Menus ---

    def request_menu(self, exist_id: str, noun: str) -> str:
        """Register a context-menu request; returns the command to send."""
        self._menu_counter += 1
        counter = str(self._menu_counter)
        self._pending_menus[counter] = MenuRequest(exist_id, noun)
        return f"_menu #{exist_id} {counter}"

    @property
    def pending_menus(self) -> Dict[str, MenuRequest]: return dict(self._pending_menus)

    def _resolve_menu(self, event: MenuResponseEvent):
        request = self._pending_menus.pop(event.id, None)
        if request is None:
            logger.warning(f"Received menu response for unknown counter: {event.id}")
            return
        logger.debug(f"Menu response for exist_id {request.exist_id} ({request.noun}): {len(event.items)} coords")
        self.menu_responses.append(MenuResponse(request.exist_id, request.noun, event.items))
