"""Tests for Session: raw server text through parser and router."""

import logging

import pytest

from sfstream.config import DEFAULTS
from sfstream.parser import PromptEvent, TextEvent
from sfstream.router import UiState, WidgetType
from sfstream.session import LAUNCH_URL_BASE, MenuResponse, Session

NOW = 1000.0


@pytest.fixture
def session():
    return Session(dict(DEFAULTS), clock=lambda: NOW)


def main_lines(session):
    return session.ui.get_window("main").content.plain_lines()


class TestFeeding:

    def test_each_line_becomes_a_window_line(self, session):
        session.feed("You swing.\nYou miss.\n")
        assert main_lines(session) == ["You swing.", "You miss."]
        assert session.lines_processed == 2

    def test_partial_line_held_until_finish(self, session):
        session.feed("first\nsec")
        assert main_lines(session) == ["first"]
        session.feed("ond\nthi")
        assert main_lines(session) == ["first", "second"]
        session.finish()
        assert main_lines(session) == ["first", "second", "thi"]
        assert session.finish() == []

    def test_carriage_returns_stripped(self, session):
        session.feed("Hello\r\n")
        assert main_lines(session) == ["Hello"]

    def test_events_returned(self, session):
        events = session.feed('Obvious paths: north.\n<prompt time="1300">&gt;</prompt>\n')
        assert events[0] == TextEvent(content="Obvious paths: north.")
        assert events[-1] == PromptEvent(time="1300", text=">")
        assert session.router.server_time_offset == 300

    def test_default_ui_has_main(self):
        session = Session()
        assert session.ui.get_window("main") is not None
        assert session.ui.get_window("main").content.max_lines == DEFAULTS["main_max_lines"]


class TestRoutingThroughSession:

    def test_inventory_window(self):
        ui = UiState()
        ui.add_window("main")
        inventory = ui.add_window("inventory", WidgetType.INVENTORY)
        session = Session(dict(DEFAULTS), ui=ui, clock=lambda: NOW)
        session.feed('<pushStream id="inv"/>a <a exist="1" noun="gem">gem</a>\nsome coins\n<popStream/>\n')
        assert inventory.content.plain_lines() == ["a gem", "some coins"]
        assert main_lines(session) == []

    def test_silent_chunk_skips_prompt(self, session):
        session.feed('<progressBar id="health" value="50" text="health 50/100"/>\n'
                     '<prompt time="1300">&gt;</prompt>\n')
        assert main_lines(session) == []
        assert session.game.vitals.health == 50

    def test_pattern_timer(self, session):
        session.feed("You are stunned for 2 rounds!\n")
        assert session.game.timers["stunned"] == NOW + 10
        assert session.game.status.stunned
        session.feed("You are no longer stunned.\n")
        assert "stunned" not in session.game.timers

    def test_clear_unmapped_stream_keeps_main(self, session):
        session.feed("You see a goblin.\n<clearStream id='percWindow'/>\n")
        assert main_lines(session) == ["You see a goblin."]

    def test_text_before_stream_window_stays_in_main(self):
        ui = UiState()
        ui.add_window("main")
        ui.add_window("room", WidgetType.ROOM)
        session = Session(dict(DEFAULTS), ui=ui, clock=lambda: NOW)
        session.feed("Obvious paths: north.<streamWindow id='room' subtitle=' - [Town]'/>\n")
        assert main_lines(session) == ["Obvious paths: north."]
        assert session.game.room_subtitle == "[Town]"

    def test_launch_url(self, session):
        session.feed('<LaunchURL src="/gs4/play/cm/loader.asp?uname=x"/>\n')
        assert session.launch_urls == [LAUNCH_URL_BASE + "/gs4/play/cm/loader.asp?uname=x"]


class TestMenus:

    def test_request_command(self, session):
        assert session.request_menu("41807070", "gem") == "_menu #41807070 1"
        assert session.request_menu("41807071", "coin") == "_menu #41807071 2"
        assert set(session.pending_menus) == {"1", "2"}

    def test_response_correlated(self, session):
        session.request_menu("41807070", "gem")
        session.feed('<menu id="1"><mi coord="2524,1735" noun="gem"/><mi coord="2524,1736"/></menu>\n')
        assert session.menu_responses == [
            MenuResponse("41807070", "gem", (("2524,1735", "gem"), ("2524,1736", None))),
        ]
        assert session.pending_menus == {}

    def test_unknown_counter_warns(self, session, caplog):
        with caplog.at_level(logging.WARNING):
            session.feed('<menu id="9"><mi coord="1,1"/></menu>\n')
        assert session.menu_responses == []
        assert "unknown counter" in caplog.text
