"""Centralized configuration with defaults, file overrides, and CLI overrides.

Priority (highest wins): CLI args > config.json > defaults here
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError

from sfstream.parser.state import ColorStyle

logger = logging.getLogger(__name__)

DEFAULTS = {
    # Preset id -> colors, looked up by <preset>, <style>, bold, links and commands
    "presets": {
        "speech": {"fg": "#53a684"},
        "whisper": {"fg": "#53a684"},
        "thought": {"fg": "#ff8080"},
        "roomName": {"fg": "#9ba2b2", "bg": "#395573"},
        "roomDesc": {},
        "monsterbold": {"fg": "#a29900"},
        "links": {"fg": "#477ab3"},
        "commands": {"fg": "#477ab3"},
    },

    # Prompt characters colored one by one
    "prompt_colors": [
        {"character": "R", "fg": "#ff0000"},
        {"character": "S", "fg": "#ffff00"},
        {"character": "H", "fg": "#9370db"},
        {"character": ">", "fg": "#a9a9a9"},
    ],
    "default_prompt_color": "#808080",

    # Event patterns matched against plain text
    "event_patterns": {
        "stun_rounds": {
            "pattern": r"You are stunned for ([0-9]+) rounds?",
            "event_type": "stunned",
            "action": "set",
            "duration_capture": 1,
            "duration_multiplier": 5.0,
        },
        "stun_end": {
            "pattern": r"You are no longer stunned",
            "event_type": "stunned",
            "action": "clear",
        },
        "webbed": {
            "pattern": r"You are (?:caught|stuck) in a web",
            "event_type": "webbed",
            "duration": 10,
        },
    },

    # Windows
    "main_max_lines": 1000,

    # Debug
    "debug": False,         # enable DEBUG-level logging
}

CONFIG_PATH = Path(__file__).parent.parent / "config.json"


class PresetColor(BaseModel):
    fg: Optional[str] = Field(default=None, description="Foreground hex color, e.g. #53a684")
    bg: Optional[str] = Field(default=None, description="Background hex color")


class PromptColor(BaseModel):
    character: str = Field(description="Prompt character to color, e.g. R, S, H, >")
    fg: Optional[str] = Field(default=None, description="Foreground hex color")
    bg: Optional[str] = Field(default=None, description="Background hex color")
    color: Optional[str] = Field(default=None, description="Legacy spelling of fg")

    @property
    def effective_fg(self) -> Optional[str]:
        return self.fg or self.color


def load_config(cli_args=None, path: Path = CONFIG_PATH) -> dict:
    """Load config: defaults → config.json → CLI args."""
    config = dict(DEFAULTS)

    # Layer 2: config.json overrides
    if path.exists():
        try:
            with open(path) as f:
                file_config = json.load(f)
            config.update({k: v for k, v in file_config.items() if v is not None})
        except (json.JSONDecodeError, OSError) as e:
            print(f"Warning: failed to load {path}: {e}")

    # Layer 3: CLI args override (skip None values)
    if cli_args:
        cli_dict = vars(cli_args) if hasattr(cli_args, '__dict__') else cli_args
        config.update({k: v for k, v in cli_dict.items() if v is not None})

    return config


def build_presets(config: Dict[str, Any]) -> Dict[str, ColorStyle]:
    """Validated preset table for the parser; bad entries are skipped."""
    presets = {}
    for preset_id, raw in (config.get("presets") or {}).items():
        try:
            preset = PresetColor.model_validate(raw or {})
        except ValidationError as e:
            logger.warning(f"Invalid preset '{preset_id}': {e.error_count()} error(s)")
            continue
        presets[preset_id] = ColorStyle(fg=preset.fg, bg=preset.bg)
    return presets


def build_prompt_colors(config: Dict[str, Any]) -> Dict[str, str]:
    """Prompt character -> fg color. The first entry for a character wins."""
    colors = {}
    for raw in config.get("prompt_colors") or []:
        try:
            entry = PromptColor.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Invalid prompt color {raw!r}: {e.error_count()} error(s)")
            continue
        if entry.effective_fg is not None and entry.character not in colors:
            colors[entry.character] = entry.effective_fg
    return colors
