"""Stream parser: one line of server markup in, an ordered list of events out."""
import logging
import re
from contextlib import contextmanager
from typing import Callable, Dict, List, Optional, Tuple

from sfstream.patterns import EventMatcher

from .dialog import DialogDataHandler
from .events import (
    DIRECT_COMMAND_ID, CastTimeEvent, ClearStreamEvent, CompassEvent, ComponentEvent,
    LabelEvent, LaunchUrlEvent, LeftHandEvent, LinkData, MenuResponseEvent, ParsedEvent,
    PromptEvent, RightHandEvent, RoomIdEvent, RoundTimeEvent, SpellEvent, SpellHandEvent,
    StreamPopEvent, StreamPushEvent, StreamWindowEvent, SwitchQuickBarEvent, TextEvent,
)
from .state import ColorStyle, PresentationState
from .tags import (
    FLUSHING_KINDS, PAIRED_TAGS, TagKind, classify_tag, find_paired_open, looks_like_tag,
)
from .utils import decode_entities, extract_attribute, inner_text, parse_int, strip_tags

logger = logging.getLogger(__name__)

_DIR_RE = re.compile(r'''<dir value=(?:"([^"]*)"|'([^']*)')''')


class StreamParser(PresentationState, DialogDataHandler):
    """Tolerant scanner for the game's tag-soup markup.

    Presentation stacks persist across `parse_line` calls; callers that
    parse a self-contained fragment use `isolated()`. Never raises on
    malformed input: unknown tags are dropped, a `<` that does not start a
    tag is literal text.
    """

    def __init__(self, presets: Optional[Dict[str, ColorStyle]] = None,
                 matcher: Optional[EventMatcher] = None):
        self._init_presentation(presets)
        self._matcher = matcher or EventMatcher()

        # Menu collection between <menu id> and </menu>
        self._menu_id: Optional[str] = None
        self._menu_items: List[Tuple[str, Optional[str]]] = []

        # True between <inv> and </inv>; content there is dropped
        self._in_inv = False
        self._buffer: List[str] = []

        self._handlers: Dict[TagKind, Callable[[str, List[ParsedEvent]], None]] = {
            TagKind.PRESET_OPEN: self._preset_open,
            TagKind.PRESET_CLOSE: lambda tag, events: self.pop_preset(),
            TagKind.COLOR_OPEN: self._color_open,
            TagKind.COLOR_CLOSE: lambda tag, events: self.pop_color(),
            TagKind.STYLE: self._style,
            TagKind.BOLD_PUSH: lambda tag, events: self.push_bold(),
            TagKind.BOLD_POP: lambda tag, events: self.pop_bold(),
            TagKind.STREAM_PUSH: self._stream_push,
            TagKind.STREAM_POP: self._stream_pop,
            TagKind.CLEAR_STREAM: self._clear_stream,
            TagKind.PROMPT: self._prompt,
            TagKind.ROUND_TIME: self._round_time,
            TagKind.CAST_TIME: self._cast_time,
            TagKind.SPELL: self._spell,
            TagKind.SPELL_OPEN: lambda tag, events: self.open_spell(),
            TagKind.SPELL_CLOSE: lambda tag, events: self.close_spell(),
            TagKind.LEFT_HAND: self._left_hand,
            TagKind.RIGHT_HAND: self._right_hand,
            TagKind.COMPASS: self._compass,
            TagKind.DIALOG_DATA: self._handle_dialog_data,
            TagKind.PROGRESS_BAR: self._handle_progress_bar,
            TagKind.LABEL: self._label,
            TagKind.NAV: self._nav,
            TagKind.STREAM_WINDOW: self._stream_window,
            TagKind.SWITCH_QUICKBAR: self._switch_quickbar,
            TagKind.COMPONENT: self._component,
            TagKind.DIRECT_OPEN: self._direct_open,
            TagKind.DIRECT_CLOSE: lambda tag, events: self.close_link(),
            TagKind.LINK_OPEN: self._link_open,
            TagKind.LINK_CLOSE: lambda tag, events: self.close_link(),
            TagKind.MENU_OPEN: self._menu_open,
            TagKind.MENU_ITEM: self._menu_item,
            TagKind.MENU_CLOSE: self._menu_close,
            TagKind.LAUNCH_URL: self._launch_url,
            TagKind.INV_OPEN: self._inv_open,
            TagKind.INV_CLOSE: self._inv_close,
            TagKind.IGNORED: self._ignore,
            TagKind.UNKNOWN: self._unknown,
        }

    @property
    def matcher(self) -> EventMatcher: return self._matcher
    @property
    def in_menu(self) -> bool: return self._menu_id is not None
    @property
    def in_inventory(self) -> bool: return self._in_inv

    def set_matcher(self, matcher: EventMatcher):
        self._matcher = matcher

    # --- Scanning ---

    def parse_line(self, line: str) -> List[ParsedEvent]:
        """Parse one decoded server line into events, in document order."""
        events: List[ParsedEvent] = []
        self._buffer = []
        pos = 0
        length = len(line)

        while pos < length:
            lt = line.find('<', pos)
            if lt == -1:
                self._add_text(line[pos:])
                break
            if lt > pos:
                self._add_text(line[pos:lt])

            paired_end = self._paired_end(line, lt)
            if paired_end is not None:
                self._process_tag(line[lt:paired_end], events)
                pos = paired_end
                continue

            if not looks_like_tag(line[lt:]):
                self._add_text('<')
                pos = lt + 1
                continue

            gt = line.find('>', lt)
            if gt == -1:
                # unterminated tag, the rest of the line is text
                self._add_text(line[lt:])
                break
            self._process_tag(line[lt:gt + 1], events)
            pos = gt + 1

        self._flush(events)
        return events

    def _paired_end(self, line: str, lt: int) -> Optional[int]:
        """End index of a paired element opening at `lt`, if its close is on this line."""
        for name in PAIRED_TAGS:
            if find_paired_open(line, name, lt) != lt:
                continue
            gt = line.find('>', lt)
            if gt == -1 or line[gt - 1] == '/':
                # self-closing form is a single tag
                return None
            close = f"</{name}>"
            end = line.find(close, lt)
            if end == -1:
                return None
            return end + len(close)
        return None

    def _add_text(self, text: str):
        if not self._in_inv and text:
            self._buffer.append(text)

    def _process_tag(self, tag: str, events: List[ParsedEvent]):
        kind = classify_tag(tag)
        if kind in FLUSHING_KINDS:
            self._flush(events)
        self._handlers[kind](tag, events)

    def _flush(self, events: List[ParsedEvent]):
        """Emit pending text with the current style; pattern events go first."""
        if not self._buffer:
            return
        raw = ''.join(self._buffer)
        self._buffer = []
        content = decode_entities(raw)
        events.extend(self._matcher.match(content))
        events.append(self._text_event(content))

    def _text_event(self, content: str) -> TextEvent:
        fg, bg = self.resolve_colors()
        self.append_link_text(content)
        return TextEvent(
            content=content,
            stream=self.current_stream,
            fg=fg,
            bg=bg,
            bold=self.bold,
            span_type=self.resolve_span_type(),
            link=self.link_data,
        )

    @contextmanager
    def isolated(self):
        """Clean presentation, menu and inventory state for a nested fragment."""
        menu_id, menu_items, in_inv = self._menu_id, self._menu_items, self._in_inv
        buffer = self._buffer
        self._menu_id, self._menu_items, self._in_inv = None, [], False
        try:
            with super().isolated():
                yield self
        finally:
            self._menu_id, self._menu_items, self._in_inv = menu_id, menu_items, in_inv
            self._buffer = buffer

    # --- Presentation tags ---

    def _preset_open(self, tag: str, events: List[ParsedEvent]):
        self.push_preset(extract_attribute(tag, "id"))

    def _color_open(self, tag: str, events: List[ParsedEvent]):
        self.push_color(extract_attribute(tag, "fg"), extract_attribute(tag, "bg"))

    def _style(self, tag: str, events: List[ParsedEvent]):
        style_id = extract_attribute(tag, "id")
        if style_id is not None:
            self.set_style(style_id)

    def _link_open(self, tag: str, events: List[ParsedEvent]):
        # <a exist="123" noun="sword" coord="2524,1864">
        exist_id = extract_attribute(tag, "exist")
        noun = extract_attribute(tag, "noun")
        link = None
        if exist_id is not None and noun is not None:
            link = LinkData(exist_id=exist_id, noun=noun, coord=extract_attribute(tag, "coord"))
        self.open_link(link, extract_attribute(tag, "fg"), extract_attribute(tag, "bg"), "links")

    def _direct_open(self, tag: str, events: List[ParsedEvent]):
        # <d cmd='look'>LOOK</d> or <d>SKILLS BASE</d>
        link = LinkData(exist_id=DIRECT_COMMAND_ID, noun=extract_attribute(tag, "cmd") or "")
        self.open_link(link, extract_attribute(tag, "fg"), extract_attribute(tag, "bg"), "commands")

    # --- Streams ---

    def _stream_push(self, tag: str, events: List[ParsedEvent]):
        stream_id = extract_attribute(tag, "id")
        if stream_id is not None:
            self.current_stream = stream_id
            events.append(StreamPushEvent(id=stream_id))

    def _stream_pop(self, tag: str, events: List[ParsedEvent]):
        events.append(StreamPopEvent())
        self.current_stream = "main"

    def _clear_stream(self, tag: str, events: List[ParsedEvent]):
        stream_id = extract_attribute(tag, "id")
        if stream_id is not None:
            events.append(ClearStreamEvent(id=stream_id))

    def _stream_window(self, tag: str, events: List[ParsedEvent]):
        # <streamWindow id='room' subtitle=" - Emberthorn Refuge, Bowery" .../>
        window_id = extract_attribute(tag, "id")
        if window_id is not None:
            events.append(StreamWindowEvent(id=window_id, subtitle=extract_attribute(tag, "subtitle")))

    def _component(self, tag: str, events: List[ParsedEvent]):
        # <component id='room exits'>Obvious paths: <d>north</d></component>
        component_id = extract_attribute(tag[:tag.find('>') + 1], "id")
        if component_id is None:
            return
        name = "compDef" if tag.startswith("<compDef") else "component"
        events.append(ComponentEvent(id=component_id, value=inner_text(tag, name)))

    # --- Typed data tags ---

    def _prompt(self, tag: str, events: List[ParsedEvent]):
        # <prompt time="1234567890">&gt;</prompt>
        time = extract_attribute(tag, "time")
        if time is not None:
            events.append(PromptEvent(time=time, text=decode_entities(inner_text(tag, "prompt"))))

    def _round_time(self, tag: str, events: List[ParsedEvent]):
        value = parse_int(extract_attribute(tag, "value"), None)
        if value is not None:
            events.append(RoundTimeEvent(value=value))

    def _cast_time(self, tag: str, events: List[ParsedEvent]):
        value = parse_int(extract_attribute(tag, "value"), None)
        if value is not None:
            events.append(CastTimeEvent(value=value))

    def _spell(self, tag: str, events: List[ParsedEvent]):
        text = decode_entities(strip_tags(inner_text(tag, "spell")))
        events.append(SpellEvent(text=text))
        events.append(SpellHandEvent(spell=text))

    def _hand(self, tag: str, name: str):
        # <right><a exist="41807070" noun="sword">steel sword</a></right>
        # or <right exist="41807070" noun="sword">steel sword</right>
        body = inner_text(tag, name)
        source = tag[:tag.find('>') + 1]
        a_start = find_paired_open(body, "a")
        if a_start != -1:
            source = body[a_start:body.find('>', a_start) + 1]
        exist_id = extract_attribute(source, "exist")
        noun = extract_attribute(source, "noun")
        item = decode_entities(strip_tags(body))
        link = None
        if exist_id is not None and noun is not None:
            link = LinkData(exist_id=exist_id, noun=noun, text=item)
        return item, link

    def _left_hand(self, tag: str, events: List[ParsedEvent]):
        item, link = self._hand(tag, "left")
        events.append(LeftHandEvent(item=item, link=link))

    def _right_hand(self, tag: str, events: List[ParsedEvent]):
        item, link = self._hand(tag, "right")
        events.append(RightHandEvent(item=item, link=link))

    def _compass(self, tag: str, events: List[ParsedEvent]):
        # <compass><dir value="n"/><dir value="e"/></compass>
        if "</compass>" not in tag and not tag.rstrip().endswith("/>"):
            return
        directions = tuple(m.group(1) if m.group(1) is not None else m.group(2)
                           for m in _DIR_RE.finditer(tag))
        events.append(CompassEvent(directions=directions))

    def _label(self, tag: str, events: List[ParsedEvent]):
        # <label id='lblBPs' value='Blood Points: 100' />
        label_id = extract_attribute(tag, "id")
        value = extract_attribute(tag, "value")
        if label_id is not None and value is not None:
            events.append(LabelEvent(id=label_id, value=decode_entities(value)))

    def _nav(self, tag: str, events: List[ParsedEvent]):
        # <nav rm='7150105'/>
        room_id = extract_attribute(tag, "rm")
        if room_id is not None:
            events.append(RoomIdEvent(id=room_id))

    def _switch_quickbar(self, tag: str, events: List[ParsedEvent]):
        bar_id = extract_attribute(tag, "id")
        if bar_id is not None:
            events.append(SwitchQuickBarEvent(id=bar_id))

    def _launch_url(self, tag: str, events: List[ParsedEvent]):
        # <LaunchURL src="/gs4/play/cm/loader.asp?uname=..."/>
        src = extract_attribute(tag, "src")
        if src is not None:
            logger.debug(f"Parsed LaunchURL: src={src}")
            events.append(LaunchUrlEvent(url=src))

    # --- Menus ---

    def _menu_open(self, tag: str, events: List[ParsedEvent]):
        menu_id = extract_attribute(tag, "id")
        if menu_id is None:
            logger.warning(f"Menu tag missing id attribute: {tag}")
            return
        logger.debug(f"Starting menu collection for id={menu_id}")
        self._menu_id = menu_id
        self._menu_items = []

    def _menu_item(self, tag: str, events: List[ParsedEvent]):
        # <mi coord="2524,1735" noun="gleaming steel baselard"/>
        if self._menu_id is None:
            return
        coord = extract_attribute(tag, "coord")
        if coord is not None:
            self._menu_items.append((coord, extract_attribute(tag, "noun")))

    def _menu_close(self, tag: str, events: List[ParsedEvent]):
        if self._menu_id is None:
            return
        logger.debug(f"Finished menu collection for id={self._menu_id}, {len(self._menu_items)} coords")
        events.append(MenuResponseEvent(id=self._menu_id, items=tuple(self._menu_items)))
        self._menu_id = None
        self._menu_items = []

    # --- Inventory passthrough ---

    def _inv_open(self, tag: str, events: List[ParsedEvent]):
        self._in_inv = True

    def _inv_close(self, tag: str, events: List[ParsedEvent]):
        self._buffer = []
        self._in_inv = False

    def _ignore(self, tag: str, events: List[ParsedEvent]):
        pass

    def _unknown(self, tag: str, events: List[ParsedEvent]):
        logger.debug(f"Dropping unrecognised tag: {tag[:60]}")
