#!/usr/bin/env python3
"""Replay a captured server log through the parser and router.

Reads the capture line by line, feeds a Session, then prints what each
window ended up holding plus the scalar game state. Useful for checking
routing decisions against a real session without connecting anywhere.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from sfstream.config import load_config, DEFAULTS
from sfstream.router import TextContent, UiState, WidgetType
from sfstream.session import Session

# Windows created when --windows is not given
DEFAULT_WINDOWS = "main,room,inventory:inventory,thoughts,speech,targets:targets,players:players"


def build_ui(spec: str, max_lines: int) -> UiState:
    """Windows from a comma list of `name` or `name:widget_type` entries."""
    ui = UiState()
    for entry in filter(None, (part.strip() for part in spec.split(","))):
        name, _, kind = entry.partition(":")
        widget_type = WidgetType(kind) if kind else WidgetType.TEXT
        ui.add_window(name, widget_type, max_lines)
    return ui


class ReplayDriver:
    """Feeds one capture file through a fresh session and reports the result."""

    def __init__(self, config, windows: str = DEFAULT_WINDOWS):
        self.config = config
        logging.basicConfig(
            level=logging.DEBUG if config.get("debug") else logging.INFO,
            format='%(asctime)s - %(levelname)s - %(message)s',
            handlers=[logging.StreamHandler(sys.stdout)]
        )
        self.logger = logging.getLogger(__name__)
        self.session = Session(config, ui=build_ui(windows, config["main_max_lines"]))

    def replay(self, path: Path) -> int:
        self.logger.info(f"Replaying {path}")
        with open(path, encoding="utf-8", errors="replace") as f:
            for line in f:
                self.session.feed_line(line.rstrip("\n"))
        self.session.finish()
        self.logger.info(f"Processed {self.session.lines_processed} lines")
        return self.session.lines_processed

    def summary(self, tail: int = 10) -> List[str]:
        out = []
        for window in self.session.ui.windows.values():
            content = window.content
            if isinstance(content, TextContent):
                lines = content.plain_lines()
                out.append(f"== {window.name} ({len(lines)} lines)")
                out.extend(f"   {line}" for line in lines[-tail:])
            else:
                out.append(f"== {window.name}: {content}")
        game = self.session.game
        out.append(f"== vitals: {game.vitals}")
        out.append(f"== status: {[name for name in game.status.flag_names() if getattr(game.status, name)]}")
        out.append(f"== hands: left={game.left_hand} right={game.right_hand} spell={game.spell}")
        out.append(f"== room: nav={game.nav_room_id} lich={game.lich_room_id} "
                   f"components={sorted(game.room_components)}")
        for url in self.session.launch_urls:
            out.append(f"== launch url: {url}")
        return out


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Replay a captured game stream through sfstream")
    parser.add_argument("capture", type=Path, help="Captured server output, one line per server line")
    parser.add_argument("--config", type=Path, default=None,
                        help="JSON config file (default: config.json beside the package)")
    parser.add_argument("--windows", default=DEFAULT_WINDOWS,
                        help="Comma list of name[:widget_type] windows to create")
    parser.add_argument("--tail", type=int, default=10,
                        help="Lines shown per text window")
    parser.add_argument("--main-max-lines", dest="main_max_lines", type=int, default=None,
                        help=f"Scrollback per text window (default: {DEFAULTS['main_max_lines']})")
    parser.add_argument("--debug", action="store_true", default=False,
                        help="Enable debug logging (routing decisions)")
    args = parser.parse_args(argv)

    # store_true gives False not None, only override if explicitly set
    cli_dict = {"main_max_lines": args.main_max_lines}
    if args.debug:
        cli_dict["debug"] = True

    config = load_config(cli_dict, args.config) if args.config else load_config(cli_dict)
    driver = ReplayDriver(config, args.windows)
    if not args.capture.exists():
        driver.logger.error(f"Capture file not found: {args.capture}")
        return 1
    driver.replay(args.capture)
    for line in driver.summary(args.tail):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
