"""Stream router: applies parsed events to window and game state."""
import logging
import time
from typing import Callable, Dict, List, Optional

from sfstream.parser import StreamParser
from sfstream.parser.events import (
    ActiveEffectEvent, BloodPointsEvent, CastTimeEvent, ClearActiveEffectsEvent,
    ClearDialogDataEvent, ClearStreamEvent, CompassEvent, ComponentEvent, InjuryImageEvent,
    LabelEvent, LaunchUrlEvent, LeftHandEvent, MenuResponseEvent, ParsedEvent, PatternEvent,
    ProgressBarEvent, PromptEvent, RightHandEvent, RoomIdEvent, RoundTimeEvent, SpellEvent,
    SpellHandEvent, StatusIndicatorEvent, StreamPopEvent, StreamPushEvent, StreamWindowEvent,
    SwitchQuickBarEvent, TextEvent,
)

from .components import ComponentHandling
from .game_state import GameState
from .streams import StreamHandling
from .widgets import WidgetUpdates
from .windows import TextSegment, UiState

logger = logging.getLogger(__name__)

DEFAULT_PROMPT_COLOR = "#808080"


class StreamRouter(StreamHandling, ComponentHandling, WidgetUpdates):
    """Routes one session's parser events into its UiState and GameState.

    Owns the per-session stream state: current stream, discard flag, the
    two chunk flags gating prompt suppression, and the inventory, combat
    and playerlist buffers. Nothing here raises on bad input.
    """

    def __init__(self, ui: UiState, game: GameState, parser: StreamParser,
                 prompt_colors: Optional[Dict[str, str]] = None,
                 default_prompt_color: str = DEFAULT_PROMPT_COLOR,
                 clock: Callable[[], float] = time.time):
        self.ui = ui
        self.game = game
        self.parser = parser
        self._prompt_colors = dict(prompt_colors or {})
        self._default_prompt_color = default_prompt_color
        self._clock = clock

        self.current_stream = "main"
        self.discard_current_stream = False
        self.chunk_has_main_text = False
        self.chunk_has_silent_updates = False
        self.server_time_offset = 0

        # Segments of the line being built
        self._segments: List[TextSegment] = []

        self.inventory_buffer: List[List[TextSegment]] = []
        self.previous_inventory: List[List[TextSegment]] = []
        self.combat_buffer: List[List[TextSegment]] = []
        self.playerlist_buffer: List[List[TextSegment]] = []
        self.previous_room_components: Dict[str, str] = {}

        self._handlers: Dict[type, Callable] = {
            TextEvent: self._on_text,
            PromptEvent: self._on_prompt,
            StreamPushEvent: self._on_stream_push,
            StreamPopEvent: self._on_stream_pop,
            StreamWindowEvent: self._on_stream_window,
            ClearStreamEvent: self._on_clear_stream,
            ComponentEvent: self._on_component,
            RoomIdEvent: self._on_room_id,
            RoundTimeEvent: self._on_round_time,
            CastTimeEvent: self._on_cast_time,
            LeftHandEvent: self._on_left_hand,
            RightHandEvent: self._on_right_hand,
            SpellHandEvent: self._on_spell_hand,
            SpellEvent: self._on_spell,
            CompassEvent: self._on_compass,
            InjuryImageEvent: self._on_injury_image,
            ProgressBarEvent: self._on_progress_bar,
            StatusIndicatorEvent: self._on_status_indicator,
            ActiveEffectEvent: self._on_active_effect,
            ClearActiveEffectsEvent: self._on_clear_active_effects,
            ClearDialogDataEvent: self._on_clear_dialog_data,
            LabelEvent: self._on_label,
            BloodPointsEvent: self._on_blood_points,
            PatternEvent: self._on_pattern,
            SwitchQuickBarEvent: self._on_switch_quickbar,
            MenuResponseEvent: self._mark_silent,
            LaunchUrlEvent: self._mark_silent,
        }

    @property
    def pending_segments(self) -> List[TextSegment]: return list(self._segments)

    def set_prompt_colors(self, prompt_colors: Dict[str, str]):
        self._prompt_colors = dict(prompt_colors)

    def handle(self, event: ParsedEvent):
        handler = self._handlers.get(type(event))
        if handler is None:
            logger.debug(f"No route for event {type(event).__name__}")
            return
        handler(event)

    def handle_all(self, events: List[ParsedEvent]):
        for event in events:
            self.handle(event)

    def _mark_silent(self, event: ParsedEvent):
        self.chunk_has_silent_updates = True
