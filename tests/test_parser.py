"""Tests for the stream parser: tag soup in, ordered events out."""

import pytest

from sfstream.config import DEFAULTS, build_presets
from sfstream.parser import (
    CompassEvent, ComponentEvent, LeftHandEvent, MenuResponseEvent, PatternEvent,
    ProgressBarEvent, PromptEvent, RightHandEvent, SpanType, SpellEvent, SpellHandEvent,
    StreamParser, StreamPopEvent, StreamPushEvent, TextEvent,
)
from sfstream.parser.events import (
    ActiveEffectEvent, BloodPointsEvent, CastTimeEvent, ClearActiveEffectsEvent,
    ClearDialogDataEvent, ClearStreamEvent, EventAction, InjuryImageEvent, LabelEvent,
    LaunchUrlEvent, RoomIdEvent, RoundTimeEvent, StatusIndicatorEvent, StreamWindowEvent,
    SwitchQuickBarEvent,
)
from sfstream.parser.dialog import BODY_PARTS, parse_progress_bar
from sfstream.patterns import EventMatcher


@pytest.fixture
def parser():
    return StreamParser(presets=build_presets(DEFAULTS))


@pytest.fixture
def plain():
    return StreamParser()


class TestFlushOrdering:
    """Pending text keeps the style it was written in."""

    def test_color_does_not_leak_past_close(self, plain):
        events = plain.parse_line('<color fg="#fff">A</color>B')
        assert [(e.content, e.fg) for e in events] == [("A", "#fff"), ("B", None)]

    def test_text_before_open_keeps_old_style(self, plain):
        events = plain.parse_line('before<color fg="#00ff00" bg="#000000">inside</color>')
        assert events[0] == TextEvent(content="before")
        assert events[1].fg == "#00ff00"
        assert events[1].bg == "#000000"

    def test_stream_switch_flushes_in_document_order(self, plain):
        events = plain.parse_line('main text<pushStream id="thoughts"/>You hear a thought.<popStream/>after')
        assert [type(e) for e in events] == [TextEvent, StreamPushEvent, TextEvent, StreamPopEvent, TextEvent]
        assert events[0].stream == "main"
        assert events[2].stream == "thoughts"
        assert events[4].stream == "main"

    def test_pattern_events_precede_text(self):
        matcher = EventMatcher.from_config(DEFAULTS["event_patterns"])
        parser = StreamParser(matcher=matcher)
        events = parser.parse_line("You are stunned for 3 rounds!")
        assert events[0] == PatternEvent(event_type="stunned", action=EventAction.SET, duration=15)
        assert isinstance(events[1], TextEvent)
        assert events[1].content == "You are stunned for 3 rounds!"

    def test_whole_line_is_one_event(self, plain):
        events = plain.parse_line("Just some plain text.")
        assert events == [TextEvent(content="Just some plain text.")]

    def test_empty_line(self, plain):
        assert plain.parse_line("") == []


class TestPresentationStacks:

    def test_matched_tags_leave_stacks_empty(self, parser):
        parser.parse_line(
            '<preset id="speech">You say, "Hi."</preset> <pushBold/>an orc<popBold/>'
            '<style id="roomName"/>[Town Square]<style id=""/>'
            '<color fg="#ff0000"><color bg="#0000ff">x</color></color>'
            '<a exist="1" noun="gem">gem</a><d cmd="look">LOOK</d>'
        )
        assert parser.is_balanced()
        assert parser.resolve_colors() == (None, None)

    def test_most_recent_push_wins(self, plain):
        events = plain.parse_line('<color fg="#111111"><color fg="#222222">x</color>y</color>')
        assert [(e.content, e.fg) for e in events] == [("x", "#222222"), ("y", "#111111")]

    def test_color_beats_preset_beats_style(self, parser):
        events = parser.parse_line(
            '<style id="roomName"/><preset id="speech"><color fg="#abcdef">a</color>b</preset>c<style id=""/>'
        )
        assert [(e.content, e.fg, e.bg) for e in events] == [
            ("a", "#abcdef", "#395573"),
            ("b", "#53a684", "#395573"),
            ("c", "#9ba2b2", "#395573"),
        ]

    def test_unmatched_close_is_noop(self, parser):
        events = parser.parse_line("</color></preset><popBold/></a></d></spell>text")
        assert events == [TextEvent(content="text")]
        assert parser.is_balanced()

    def test_unmatched_open_persists_across_lines(self, plain):
        plain.parse_line('<color fg="#ff0000">start')
        events = plain.parse_line("still red")
        assert events[0].fg == "#ff0000"
        plain.parse_line("</color>")
        assert plain.is_balanced()

    def test_unknown_preset_still_balances(self, plain):
        events = plain.parse_line('<preset id="nosuch">x</preset>')
        assert events[0].fg is None
        assert plain.is_balanced()

    def test_bold_uses_monsterbold_preset(self, parser):
        events = parser.parse_line("You see <pushBold/>a kobold<popBold/>.")
        bold = events[1]
        assert bold.content == "a kobold"
        assert bold.bold is True
        assert bold.fg == "#a29900"
        assert bold.span_type is SpanType.MONSTERBOLD
        assert events[2].bold is False

    def test_speech_span(self, parser):
        events = parser.parse_line('<preset id="speech">You say</preset>, "Hello."')
        assert events[0].span_type is SpanType.SPEECH
        assert events[1].span_type is SpanType.NORMAL

    def test_update_presets(self, plain):
        plain.update_presets(build_presets({"presets": {"whisper": {"fg": "#010203"}}}))
        events = plain.parse_line('<preset id="whisper">psst</preset>')
        assert events[0].fg == "#010203"


class TestLinks:

    def test_link_collects_text(self, parser):
        events = parser.parse_line('You see <a exist="41807070" noun="sword">a steel sword</a>.')
        link_event = events[1]
        assert link_event.span_type is SpanType.LINK
        assert link_event.fg == "#477ab3"
        assert link_event.link.exist_id == "41807070"
        assert link_event.link.noun == "sword"
        assert link_event.link.text == "a steel sword"
        assert events[0].link is None
        assert events[2].link is None
        assert parser.link_data is None

    def test_link_coord(self, plain):
        events = plain.parse_line('<a exist="2" noun="door" coord="2524,1864">door</a>')
        assert events[0].link.coord == "2524,1864"

    def test_direct_command(self, parser):
        events = parser.parse_line("<d cmd='look'>LOOK</d> and <d>SKILLS BASE</d>")
        assert events[0].link.exist_id == "_direct_"
        assert events[0].link.noun == "look"
        assert events[0].fg == "#477ab3"
        assert events[2].link.noun == ""
        assert events[2].link.text == "SKILLS BASE"

    def test_link_inside_bold_keeps_bold_color(self, parser):
        events = parser.parse_line('<pushBold/><a exist="9" noun="orc">an orc</a><popBold/>')
        assert events[0].fg == "#a29900"
        assert events[0].span_type is SpanType.MONSTERBOLD
        assert events[0].link.noun == "orc"
        assert parser.is_balanced()

    def test_explicit_link_color(self, parser):
        events = parser.parse_line('<a exist="1" noun="x" fg="#123456">x</a>')
        assert events[0].fg == "#123456"

    def test_link_text_accumulates_across_runs(self, plain):
        events = plain.parse_line('<a exist="7" noun="gem">a <color fg="#ff00ff">blue</color> gem</a>')
        assert [e.link.text for e in events] == ["a ", "a blue", "a blue gem"]
        assert all(e.span_type is SpanType.LINK for e in events)


class TestEntities:

    def test_decoded_exactly_once(self, plain):
        events = plain.parse_line("&lt;stunned&gt; and &amp;lt;")
        assert events[0].content == "<stunned> and &lt;"

    def test_quotes(self, plain):
        events = plain.parse_line("&quot;Hi&quot; &apos;there&apos;")
        assert events[0].content == "\"Hi\" 'there'"


class TestMalformedInput:

    def test_lone_angle_bracket_is_text(self, plain):
        assert plain.parse_line("I <3 you") == [TextEvent(content="I <3 you")]

    def test_unterminated_tag_is_text(self, plain):
        assert plain.parse_line("oops <color fg") == [TextEvent(content="oops <color fg")]

    def test_unknown_tags_dropped(self, plain):
        events = plain.parse_line("<mystery foo='1'>hello</mystery><output class=''/>")
        assert events == [TextEvent(content="hello")]

    def test_ignored_inventory_chrome(self, plain):
        events = plain.parse_line("<clearContainer id='stow'/><container id='stow' title='My Backpack'/>"
                                  "<exposeContainer id='stow'/><dropDownBox id='dDBTarget'/>ok")
        assert events == [TextEvent(content="ok")]

    def test_dangling_paired_open(self, plain):
        # no close on the line: treated as a single tag
        events = plain.parse_line("<compass><dir value='n'/>")
        assert events == []


class TestInventoryRegion:

    def test_inv_content_discarded(self, plain):
        events = plain.parse_line("<inv id='stow'>In the backpack: a gem</inv>You look around.")
        assert events == [TextEvent(content="You look around.")]
        assert not plain.in_inventory

    def test_inv_spans_lines(self, plain):
        plain.parse_line("<inv id='stow'>a gem")
        assert plain.in_inventory
        assert plain.parse_line("a coin") == []
        assert plain.parse_line("</inv>visible") == [TextEvent(content="visible")]

    def test_text_before_inv_is_kept(self, plain):
        events = plain.parse_line("kept<inv id='stow'>dropped</inv>")
        assert events == [TextEvent(content="kept")]


class TestTypedTags:

    def test_prompt(self, plain):
        events = plain.parse_line('<prompt time="1700000000">&gt;</prompt>')
        assert events == [PromptEvent(time="1700000000", text=">")]

    def test_prompt_without_time_dropped(self, plain):
        assert plain.parse_line("<prompt>&gt;</prompt>") == []

    def test_prompt_flushes_pending_text(self, plain):
        events = plain.parse_line('You wait.<prompt time="5">R&gt;</prompt>')
        assert [type(e) for e in events] == [TextEvent, PromptEvent]
        assert events[1].text == "R>"

    def test_countdowns(self, plain):
        events = plain.parse_line('<roundTime value="1700000005"/><castTime value="1700000003"/>')
        assert events == [RoundTimeEvent(value=1700000005), CastTimeEvent(value=1700000003)]

    def test_unparseable_countdown_dropped(self, plain):
        assert plain.parse_line('<roundTime value="soon"/>') == []

    def test_spell(self, plain):
        events = plain.parse_line("<spell exist='spell'>Spirit Warding I</spell>")
        assert events == [SpellEvent(text="Spirit Warding I"), SpellHandEvent(spell="Spirit Warding I")]

    def test_unpaired_spell_scope(self, plain):
        plain.parse_line("<spell exist='spell'>")
        events = plain.parse_line("Minor Sanctuary")
        assert events[0].span_type is SpanType.SPELL
        plain.parse_line("</spell>")
        assert plain.spell_depth == 0

    def test_hands(self, plain):
        events = plain.parse_line('<left>Empty</left><right exist="41807070" noun="sword">steel sword</right>')
        assert events[0] == LeftHandEvent(item="Empty")
        right = events[1]
        assert isinstance(right, RightHandEvent)
        assert right.item == "steel sword"
        assert right.link.exist_id == "41807070"
        assert right.link.text == "steel sword"

    def test_hand_with_inner_link(self, plain):
        events = plain.parse_line('<left><a exist="5" noun="shield">a &quot;tower&quot; shield</a></left>')
        assert events[0].item == 'a "tower" shield'
        assert events[0].link.noun == "shield"

    def test_compass(self, plain):
        events = plain.parse_line("<compass><dir value=\"n\"/><dir value='e'/><dir value=\"out\"/></compass>")
        assert events == [CompassEvent(directions=("n", "e", "out"))]

    def test_empty_compass(self, plain):
        assert plain.parse_line("<compass></compass>") == [CompassEvent(directions=())]

    def test_component(self, plain):
        events = plain.parse_line("<component id='room exits'>Obvious paths: <d>north</d>.</component>")
        assert events == [ComponentEvent(id="room exits", value="Obvious paths: <d>north</d>.")]

    def test_comp_def(self, plain):
        events = plain.parse_line("<compDef id='room desc'>A quiet room.</compDef>")
        assert events == [ComponentEvent(id="room desc", value="A quiet room.")]

    def test_bare_component_close_pops_stream(self, plain):
        assert plain.parse_line("</component>") == [StreamPopEvent()]

    def test_stream_tags(self, plain):
        events = plain.parse_line("<clearStream id='room'/><streamWindow id='room' title='Room' "
                                  "subtitle=\" - Emberthorn Refuge, Bowery\"/>")
        assert events == [
            ClearStreamEvent(id="room"),
            StreamWindowEvent(id="room", subtitle=" - Emberthorn Refuge, Bowery"),
        ]

    def test_misc_single_tags(self, plain):
        events = plain.parse_line("<nav rm='7150105'/><switchQuickBar id='quickbar-2'/>"
                                  "<LaunchURL src=\"/gs4/play/cm/loader.asp?uname=x\"/>"
                                  "<label id='lblBPs' value='Blood Points: 100' />")
        assert events == [
            RoomIdEvent(id="7150105"),
            SwitchQuickBarEvent(id="quickbar-2"),
            LaunchUrlEvent(url="/gs4/play/cm/loader.asp?uname=x"),
            LabelEvent(id="lblBPs", value="Blood Points: 100"),
        ]


class TestProgressBars:

    def test_text_gives_current_and_max(self):
        bar = parse_progress_bar("<progressBar id='mana' value='94' text='mana 386/407' />")
        assert (bar.value, bar.max) == (386, 407)

    def test_no_slash_uses_percentage(self):
        bar = parse_progress_bar("<progressBar id='encumlevel' value='10' text='Light' />")
        assert (bar.value, bar.max, bar.text) == (10, 100, "Light")

    def test_bad_percentage_is_zero(self):
        bar = parse_progress_bar("<progressBar id='x' value='lots' text='nothing' />")
        assert bar.value == 0

    def test_unparseable_sides_fall_back(self):
        bar = parse_progress_bar("<progressBar id='spirit' value='60' text='spirit ?/?' />")
        assert (bar.value, bar.max) == (60, 100)

    def test_rightmost_slash(self):
        bar = parse_progress_bar("<progressBar id='health' value='50' text='health 1/2 50/100' />")
        assert (bar.value, bar.max) == (50, 100)

    def test_missing_id(self):
        assert parse_progress_bar("<progressBar value='1' text='a'/>") is None

    def test_standalone_tag(self, plain):
        events = plain.parse_line("<progressBar id='health' value='100' text='health 326/326' />")
        assert events == [ProgressBarEvent(id="health", value=326, max=326, text="health 326/326")]


class TestDialogData:

    def test_minivitals(self, plain):
        events = plain.parse_line(
            "<dialogData id='minivitals'><progressBar id='mana' value='94' text='mana 386/407' "
            "left='0%' top='0%' width='25%' height='100%'/><progressBar id='stamina' value='100' "
            "text='stamina 40/40'/></dialogData>"
        )
        assert events == [
            ProgressBarEvent(id="mana", value=386, max=407, text="mana 386/407"),
            ProgressBarEvent(id="stamina", value=40, max=40, text="stamina 40/40"),
        ]

    def test_status_icons(self, plain):
        events = plain.parse_line("<dialogData id='IconSTUNNED' value='active'/>"
                                  "<dialogData id='IconBLEEDING' value='clear'/>")
        assert events == [
            StatusIndicatorEvent(id="stunned", active=True),
            StatusIndicatorEvent(id="bleeding", active=False),
        ]

    def test_injuries(self, plain):
        events = plain.parse_line("<dialogData id='injuries'><image id='head' name='Injury2'/>"
                                  "<image id='leftArm' name='Scar1'/></dialogData>")
        assert events == [
            InjuryImageEvent(id="head", name="Injury2"),
            InjuryImageEvent(id="leftArm", name="Scar1"),
        ]

    def test_injuries_clear(self, plain):
        events = plain.parse_line("<dialogData id='injuries' clear='t'></dialogData>")
        assert len(events) == len(BODY_PARTS) == 14
        assert all(e.id == e.name for e in events)

    def test_active_effects(self, plain):
        events = plain.parse_line(
            "<dialogData id='Active Spells'><progressBar id='115' value='74' "
            "text=\"Fasthr's Reward\" time='03:06:54'/><progressBar id='bad' value='x' "
            "text='skip' time='00:00:01'/></dialogData>"
        )
        assert events == [ActiveEffectEvent(category="ActiveSpells", id="115", value=74,
                                            text="Fasthr's Reward", time="03:06:54")]

    def test_active_effects_clear(self, plain):
        events = plain.parse_line("<dialogData id='Buffs' clear='t'></dialogData>")
        assert events == [ClearActiveEffectsEvent(category="Buffs")]

    def test_other_clear(self, plain):
        events = plain.parse_line("<dialogData id='Spells' clear='t'></dialogData>")
        assert events == [ClearDialogDataEvent(id="Spells")]

    def test_blood_points(self, plain):
        events = plain.parse_line("<dialogData id='BetrayerPanel'><label id='lblBPs' "
                                  "value='Blood Points: 250' top='0' left='0' align='center'/></dialogData>")
        assert events == [BloodPointsEvent(value=250)]

    def test_panel_id_not_taken_from_inner_tag(self, plain):
        events = plain.parse_line("<dialogData id='IconHIDDEN' value='active'/>"
                                  "<dialogData id='minivitals'><progressBar id=\"health\" value='50' "
                                  "text='health 50/100'/></dialogData>")
        assert events == [
            StatusIndicatorEvent(id="hidden", active=True),
            ProgressBarEvent(id="health", value=50, max=100, text="health 50/100"),
        ]


class TestMenus:

    def test_five_items_in_order(self, plain):
        coords = ["2524,1735", "2524,1736", "2524,1737", "2524,1738", "2524,1739"]
        line = "<menu id='12' x='0'>" + "".join(f'<mi coord="{c}"/>' for c in coords) + "</menu>"
        events = plain.parse_line(line)
        assert len(events) == 1
        menu = events[0]
        assert isinstance(menu, MenuResponseEvent)
        assert menu.id == "12"
        assert list(menu.coords) == coords

    def test_secondary_noun(self, plain):
        events = plain.parse_line('<menu id="3"><mi coord="1,2" noun="gleaming baselard"/></menu>')
        assert events[0].items == (("1,2", "gleaming baselard"),)

    def test_menu_across_lines(self, plain):
        plain.parse_line("<menu id='4'>")
        assert plain.in_menu
        plain.parse_line('<mi coord="1,1"/>')
        events = plain.parse_line("</menu>")
        assert events == [MenuResponseEvent(id="4", items=(("1,1", None),))]
        assert not plain.in_menu

    def test_menu_without_id(self, plain):
        assert plain.parse_line('<menu><mi coord="1,1"/></menu>') == []

    def test_item_outside_menu_ignored(self, plain):
        assert plain.parse_line('<mi coord="1,1"/>') == []


class TestIsolated:

    def test_nested_parse_restores_state(self, parser):
        parser.parse_line('<color fg="#ff0000"><a exist="1" noun="x">open')
        before = parser.snapshot()
        with parser.isolated():
            events = parser.parse_line("<pushBold/>inner")
            assert events[0].fg == "#a29900"
            assert events[0].link is None
        assert parser.snapshot() == before
        more = parser.parse_line("more")[0]
        assert more.fg == "#477ab3"
        assert more.link.text == "openmore"
