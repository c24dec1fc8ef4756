"""PresentationState mixin: nested color/preset/style/bold stacks and link tracking."""
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple

from .events import LinkData, SpanType


@dataclass(frozen=True)
class ColorStyle:
    fg: Optional[str] = None
    bg: Optional[str] = None


EMPTY_STYLE = ColorStyle()


@dataclass(frozen=True)
class ParserSnapshot:
    """Everything a nested parse may disturb, captured by value."""
    color_stack: Tuple[ColorStyle, ...]
    preset_stack: Tuple[ColorStyle, ...]
    speech_stack: Tuple[bool, ...]
    style_stack: Tuple[ColorStyle, ...]
    bold_stack: Tuple[bool, ...]
    link_depth: int
    link_pushes: Tuple[bool, ...]
    spell_depth: int
    link_data: Optional[LinkData]
    current_stream: str


class PresentationState:
    """Mixin holding the four presentation stacks plus link/spell depth.

    Every close pops only what its own open pushed, and popping an empty
    stack is a no-op.
    """

    def _init_presentation(self, presets: Optional[Dict[str, ColorStyle]] = None):
        self._presets: Dict[str, ColorStyle] = dict(presets or {})
        self.current_stream = "main"
        self.reset_presentation()

    def reset_presentation(self):
        self.color_stack: List[ColorStyle] = []
        self.preset_stack: List[ColorStyle] = []
        # parallel to preset_stack: True where the entry came from <preset id="speech">
        self._speech_stack: List[bool] = []
        self.style_stack: List[ColorStyle] = []
        # one entry per open bold scope: whether it pushed the monsterbold preset
        self.bold_stack: List[bool] = []
        self.link_depth = 0
        # one entry per open <a>/<d>: whether it pushed a color
        self._link_pushes: List[bool] = []
        self.spell_depth = 0
        self.link_data: Optional[LinkData] = None

    @property
    def presets(self) -> Dict[str, ColorStyle]: return self._presets
    @property
    def bold(self) -> bool: return bool(self.bold_stack)

    def update_presets(self, presets: Dict[str, ColorStyle]):
        """Replace the preset table, e.g. after a color config reload."""
        self._presets = dict(presets)

    # --- Stack operations ---

    def push_color(self, fg: Optional[str], bg: Optional[str]):
        self.color_stack.append(ColorStyle(fg, bg))

    def pop_color(self):
        if self.color_stack:
            self.color_stack.pop()

    def push_preset(self, preset_id: Optional[str]):
        # unknown ids still push so the matching close stays balanced
        self.preset_stack.append(self._presets.get(preset_id or "", EMPTY_STYLE))
        self._speech_stack.append(preset_id == "speech")

    def pop_preset(self):
        if self.preset_stack:
            self.preset_stack.pop()
            self._speech_stack.pop()

    def set_style(self, style_id: str):
        """`<style id=''>` resets the style stack; a known id pushes its colors."""
        if not style_id:
            self.style_stack.clear()
        elif style_id in self._presets:
            self.style_stack.append(self._presets[style_id])

    def push_bold(self):
        monsterbold = self._presets.get("monsterbold")
        if monsterbold is not None:
            self.preset_stack.append(monsterbold)
            self._speech_stack.append(False)
        self.bold_stack.append(monsterbold is not None)

    def pop_bold(self):
        if not self.bold_stack:
            return
        if self.bold_stack.pop():
            self.pop_preset()

    def open_link(self, link: Optional[LinkData], fg: Optional[str], bg: Optional[str], preset_id: str):
        """Enter an `<a>`/`<d>` scope.

        Inside bold text the link keeps the bold colors and pushes nothing.
        """
        self.link_depth += 1
        if link is not None:
            self.link_data = link
        pushed = False
        if not self.bold_stack:
            if fg is not None or bg is not None:
                self.push_color(fg, bg)
                pushed = True
            elif preset_id in self._presets:
                self.color_stack.append(self._presets[preset_id])
                pushed = True
        self._link_pushes.append(pushed)

    def close_link(self):
        if self.link_depth == 0:
            return
        self.link_depth -= 1
        if self.link_depth == 0:
            self.link_data = None
        if self._link_pushes and self._link_pushes.pop():
            self.pop_color()

    def open_spell(self):
        self.spell_depth += 1

    def close_spell(self):
        if self.spell_depth > 0:
            self.spell_depth -= 1

    # --- Resolution ---

    def resolve_colors(self) -> Tuple[Optional[str], Optional[str]]:
        """Effective (fg, bg): explicit color > preset > style, most recent push wins."""
        fg = bg = None
        for stack in (self.color_stack, self.preset_stack, self.style_stack):
            for style in reversed(stack):
                if fg is None and style.fg is not None:
                    fg = style.fg
                if bg is None and style.bg is not None:
                    bg = style.bg
        return fg, bg

    def resolve_span_type(self) -> SpanType:
        if self.bold_stack:
            return SpanType.MONSTERBOLD
        if self.spell_depth > 0:
            return SpanType.SPELL
        if self.link_depth > 0:
            return SpanType.LINK
        if any(self._speech_stack):
            return SpanType.SPEECH
        return SpanType.NORMAL

    def append_link_text(self, text: str):
        if self.link_depth > 0 and self.link_data is not None:
            self.link_data = replace(self.link_data, text=self.link_data.text + text)

    def is_balanced(self) -> bool:
        return not (self.color_stack or self.preset_stack or self.style_stack or self.bold_stack
                    or self.link_depth or self.spell_depth)

    # --- Snapshots ---

    def snapshot(self) -> ParserSnapshot:
        return ParserSnapshot(
            color_stack=tuple(self.color_stack),
            preset_stack=tuple(self.preset_stack),
            speech_stack=tuple(self._speech_stack),
            style_stack=tuple(self.style_stack),
            bold_stack=tuple(self.bold_stack),
            link_depth=self.link_depth,
            link_pushes=tuple(self._link_pushes),
            spell_depth=self.spell_depth,
            link_data=self.link_data,
            current_stream=self.current_stream,
        )

    def restore(self, snap: ParserSnapshot):
        self.color_stack = list(snap.color_stack)
        self.preset_stack = list(snap.preset_stack)
        self._speech_stack = list(snap.speech_stack)
        self.style_stack = list(snap.style_stack)
        self.bold_stack = list(snap.bold_stack)
        self.link_depth = snap.link_depth
        self._link_pushes = list(snap.link_pushes)
        self.spell_depth = snap.spell_depth
        self.link_data = snap.link_data
        self.current_stream = snap.current_stream

    @contextmanager
    def isolated(self):
        """Run a nested parse from a clean presentation state, then restore.

        The outer document's styling is unaffected by whatever the nested
        fragment opens or leaves unbalanced.
        """
        snap = self.snapshot()
        self.reset_presentation()
        try:
            yield self
        finally:
            self.restore(snap)
