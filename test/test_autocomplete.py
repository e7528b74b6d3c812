"""Tests for multitrigger.context.autocomplete.MultiTriggerAutocomplete."""

import pytest

from multitrigger.config import AutocompleteConfig, FocusLossPolicy, OptionsAlignment
from multitrigger.context.autocomplete import (
    SUGGESTIONS_AVAILABLE,
    SUGGESTIONS_HIDDEN,
    AutocompleteState,
    MultiTriggerAutocomplete,
)
from multitrigger.context.debounce import ManualScheduler
from multitrigger.context.focus import FocusManager, FocusNode, KeyEvent, KeyEventResult, Keys
from multitrigger.context.text_buffer import TextEditingBuffer, TextEditingValue, TextSelection
from multitrigger.context.trigger import AutocompleteQuery, AutocompleteTrigger
from multitrigger.core.exceptions import AutocompleteConfigurationError


AT = AutocompleteTrigger("@")
HASH = AutocompleteTrigger("#")


class Harness:
    """Coordinator with an internal buffer, a manual clock and recorders."""

    def __init__(self, triggers=(AT, HASH), **kwargs):
        self.scheduler = ManualScheduler()
        self.announcements = []
        self.notifications = 0
        self.ac = MultiTriggerAutocomplete(
            triggers,
            scheduler=self.scheduler,
            announcer=self.announcements.append,
            **kwargs,
        )
        self.ac.subscribe(self._on_change)
        self.ac.attach()
        self.ac.focus_node.request_focus()

    def _on_change(self, ac):
        self.notifications += 1

    def type(self, text, cursor=None):
        self.ac.text_editing_buffer.set_value(
            text, TextSelection.collapsed(len(text) if cursor is None else cursor)
        )

    def settle(self):
        self.scheduler.advance(self.ac.debounce_interval)

    @property
    def text(self):
        return self.ac.text_editing_buffer.text


@pytest.fixture
def h():
    return Harness()


class TestConstruction:
    def test_buffer_and_initial_value_are_exclusive(self):
        manager = FocusManager()
        with pytest.raises(AutocompleteConfigurationError):
            MultiTriggerAutocomplete(
                [AT],
                text_editing_buffer=TextEditingBuffer(),
                focus_node=FocusNode(manager),
                initial_value=TextEditingValue("x"),
            )

    def test_buffer_requires_focus_node(self):
        with pytest.raises(AutocompleteConfigurationError):
            MultiTriggerAutocomplete([AT], text_editing_buffer=TextEditingBuffer())

    def test_focus_node_requires_buffer(self):
        with pytest.raises(AutocompleteConfigurationError):
            MultiTriggerAutocomplete([AT], focus_node=FocusNode(FocusManager()))

    def test_negative_debounce_rejected(self):
        with pytest.raises(AutocompleteConfigurationError):
            MultiTriggerAutocomplete([AT], debounce_interval=-1)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            MultiTriggerAutocomplete([AT], debounce_interval=-1)

    def test_defaults(self):
        ac = MultiTriggerAutocomplete([AT])
        assert ac.debounce_interval == 0.3
        assert ac.options_alignment is OptionsAlignment.BOTTOM
        assert ac.options_width_factor == 1.0
        assert ac.focus_loss_policy is FocusLossPolicy.CLOSE
        assert ac.state is AutocompleteState.IDLE

    def test_from_config(self, tmp_path):
        config = AutocompleteConfig(
            config_path=tmp_path / "c.json",
            debounce_interval=0.1,
            options_alignment=OptionsAlignment.TOP_END,
            options_width_factor=0.5,
            focus_loss_policy=FocusLossPolicy.HIDE,
        )
        ac = MultiTriggerAutocomplete.from_config(config, [AT])
        assert ac.debounce_interval == 0.1
        assert ac.options_alignment is OptionsAlignment.TOP_END
        assert ac.options_anchor.width_factor == 0.5
        assert ac.focus_loss_policy is FocusLossPolicy.HIDE

    def test_duplicate_triggers_collapsed_in_order(self):
        ac = MultiTriggerAutocomplete([HASH, AT, AutocompleteTrigger("#")])
        assert ac.autocomplete_triggers == (HASH, AT)


class TestTextChanges:
    def test_opens_after_debounce(self, h):
        h.type("hello @al")
        assert h.ac.active_query is None
        assert h.ac.state is AutocompleteState.PENDING
        h.settle()
        assert h.ac.active_query == AutocompleteQuery("al", TextSelection(7, 9))
        assert h.ac.active_trigger == AT
        assert h.ac.should_show_options
        assert h.ac.state is AutocompleteState.OPEN
        assert h.ac.last_observed_text == "hello @al"

    def test_rapid_changes_evaluate_once_with_latest_text(self, h):
        h.type("@a")
        h.scheduler.advance(0.1)
        h.type("@al")
        h.scheduler.advance(0.2)
        assert h.notifications == 0
        h.scheduler.advance(0.1)
        assert h.notifications == 1
        assert h.ac.active_query.query == "al"

    def test_no_match_closes(self, h):
        h.type("@al")
        h.settle()
        h.type("@al ")
        h.settle()
        assert h.ac.active_query is None
        assert h.ac.active_trigger is None
        assert h.ac.state is AutocompleteState.IDLE

    def test_empty_text_forces_idle(self, h):
        h.type("@al")
        h.settle()
        h.type("")
        h.settle()
        assert h.ac.active_query is None

    def test_first_registered_trigger_wins(self):
        loose = AutocompleteTrigger("@", only_after_whitespace=False, minimum_query_length=1)
        strict = AutocompleteTrigger("@", only_after_whitespace=False)
        h = Harness(triggers=[loose, strict])
        h.type("x@al")
        h.settle()
        assert h.ac.active_trigger is loose

    def test_later_trigger_used_when_earlier_does_not_match(self, h):
        h.type("see #bu")
        h.settle()
        assert h.ac.active_trigger == HASH
        assert h.ac.active_query.query == "bu"

    def test_typing_inside_open_query_updates_it(self, h):
        h.type("@a")
        h.settle()
        h.type("@al")
        h.settle()
        assert h.ac.active_query.query == "al"
        assert h.notifications == 2

    def test_same_text_with_open_query_is_noop(self, h):
        h.type("@al")
        h.settle()
        h.type("@al", cursor=2)
        h.settle()
        assert h.ac.active_query.query == "al"
        assert h.notifications == 1

    def test_not_attached_ignores_changes(self):
        ac = MultiTriggerAutocomplete([AT], scheduler=ManualScheduler())
        assert ac.on_text_changed() is False


class TestShowOptions:
    def test_identical_show_does_not_renotify_or_reannounce(self, h):
        h.type("@al")
        h.settle()
        assert h.announcements == [SUGGESTIONS_AVAILABLE]
        h.ac.show_options(AutocompleteQuery("al", TextSelection(1, 3)), AutocompleteTrigger("@"))
        assert h.notifications == 1
        assert h.announcements == [SUGGESTIONS_AVAILABLE]

    def test_different_query_notifies(self, h):
        h.ac.show_options(AutocompleteQuery("a", TextSelection(1, 2)), AT)
        h.ac.show_options(AutocompleteQuery("al", TextSelection(1, 3)), AT)
        assert h.notifications == 2


class TestCloseOptions:
    def test_close(self, h):
        h.type("@al")
        h.settle()
        h.ac.close_options()
        assert h.ac.active_query is None
        assert h.ac.active_trigger is None
        assert not h.ac.should_show_options

    def test_close_twice_is_same_as_once(self, h):
        h.type("@al")
        h.settle()
        h.ac.close_options()
        notified = h.notifications
        h.ac.close_options()
        assert h.notifications == notified
        assert h.ac.state is AutocompleteState.IDLE

    def test_close_without_query_is_noop(self, h):
        h.ac.close_options()
        assert h.notifications == 0

    def test_close_returns_focus_from_options(self, h):
        h.type("@al")
        h.settle()
        h.ac.options_focus_node.request_focus()
        h.ac.close_options()
        assert h.ac.focus_node.has_primary_focus
        assert h.ac.active_query is None


class TestAcceptOption:
    def test_keep_trigger(self, h):
        h.type("hello @al")
        h.settle()
        h.ac.accept_autocomplete_option("alice")
        assert h.text == "hello @alice "
        assert h.ac.text_editing_buffer.selection == TextSelection.collapsed(13)
        assert h.ac.active_query is None
        assert h.ac.active_trigger is None

    def test_drop_trigger(self, h):
        h.type("hello @al")
        h.settle()
        h.ac.accept_autocomplete_option("alice", keep_trigger_character=False)
        assert h.text == "hello alice "
        assert h.ac.text_editing_buffer.selection == TextSelection.collapsed(12)

    def test_existing_space_is_reused(self, h):
        h.type("hi @al there", cursor=6)
        h.settle()
        h.ac.accept_autocomplete_option("alice")
        assert h.text == "hi @alice there"
        assert h.ac.text_editing_buffer.selection == TextSelection.collapsed(10)

    def test_text_after_without_space_gets_one(self, h):
        h.type("hi @alx", cursor=6)
        h.settle()
        h.ac.accept_autocomplete_option("alice")
        assert h.text == "hi @alice x"

    def test_multi_character_trigger_removed(self):
        h = Harness(triggers=[AutocompleteTrigger("::")])
        h.type("hi ::smi")
        h.settle()
        h.ac.accept_autocomplete_option("😄", keep_trigger_character=False)
        assert h.text == "hi 😄 "

    def test_mutates_buffer_once(self, h):
        h.type("@al")
        h.settle()
        changes = []
        h.ac.text_editing_buffer.subscribe(lambda: changes.append(h.text))
        h.ac.accept_autocomplete_option("alice")
        assert changes == ["@alice "]

    def test_without_query_is_noop(self, h):
        h.type("plain")
        h.ac.accept_autocomplete_option("alice")
        assert h.text == "plain"
        assert h.ac.active_query is None

    def test_empty_option_ignored(self, h):
        h.type("@al")
        h.settle()
        h.ac.accept_autocomplete_option("")
        assert h.text == "@al"
        assert h.ac.active_query is not None

    def test_stale_range_closes_without_editing(self, h):
        h.type("hello @al")
        h.settle()
        h.type("he")
        h.ac.accept_autocomplete_option("alice")
        assert h.text == "he"
        assert h.ac.active_query is None

    def test_accepted_text_does_not_reopen(self, h):
        h.type("@al")
        h.settle()
        h.ac.accept_autocomplete_option("alice")
        h.settle()
        assert h.ac.active_query is None


class TestFocus:
    def test_focus_loss_closes_by_default(self, h):
        h.type("@al")
        h.settle()
        h.ac.focus_node.unfocus()
        assert h.ac.suppressed
        assert h.ac.active_query is None
        assert not h.ac.should_show_options

    def test_focus_loss_does_not_steal_focus_back(self, h):
        h.type("@al")
        h.settle()
        h.ac.focus_node.unfocus()
        assert h.ac.focus_node.manager.primary_focus is None

    def test_focus_regain_reevaluates_without_debounce(self, h):
        h.type("@al")
        h.settle()
        h.ac.focus_node.unfocus()
        h.ac.focus_node.request_focus()
        assert not h.ac.suppressed
        assert h.ac.active_query.query == "al"
        assert h.ac.should_show_options

    def test_hide_policy_keeps_query(self):
        h = Harness(focus_loss_policy=FocusLossPolicy.HIDE)
        h.type("@al")
        h.settle()
        h.ac.focus_node.unfocus()
        assert h.ac.active_query.query == "al"
        assert h.ac.state is AutocompleteState.SUPPRESSED
        h.ac.focus_node.request_focus()
        assert h.ac.state is AutocompleteState.OPEN

    def test_hide_policy_renotifies_on_refocus(self):
        h = Harness(focus_loss_policy=FocusLossPolicy.HIDE)
        h.type("@al")
        h.settle()
        h.ac.focus_node.unfocus()
        before = h.notifications
        h.ac.focus_node.request_focus()
        assert h.notifications == before + 1

    def test_moving_to_options_keeps_query(self, h):
        h.type("@al")
        h.settle()
        h.ac.options_focus_node.request_focus()
        assert h.ac.active_query is not None
        assert h.ac.should_show_options

    def test_focus_gain_with_empty_text_stays_idle(self, h):
        h.ac.focus_node.unfocus()
        h.ac.focus_node.request_focus()
        assert h.ac.state is AutocompleteState.IDLE

    def test_text_change_clears_suppression(self, h):
        h.ac.focus_node.unfocus()
        assert h.ac.suppressed
        h.type("x")
        h.settle()
        assert not h.ac.suppressed


class TestKeys:
    def test_escape_closes(self, h):
        h.type("@al")
        h.settle()
        assert h.ac.on_key_event(KeyEvent(Keys.ESCAPE)) is True
        assert h.ac.active_query is None
        assert h.announcements[-1] == SUGGESTIONS_HIDDEN

    def test_escape_from_options_returns_focus_and_stays_closed(self, h):
        h.type("@al")
        h.settle()
        h.ac.options_focus_node.request_focus()
        result = h.ac.focus_node.manager.dispatch_key(KeyEvent(Keys.ESCAPE))
        assert result is KeyEventResult.HANDLED
        assert h.ac.focus_node.has_primary_focus
        assert h.ac.active_query is None

    def test_escape_ignored_when_closed(self, h):
        assert h.ac.on_key_event(KeyEvent(Keys.ESCAPE)) is False

    def test_down_moves_focus_to_options(self, h):
        h.type("@al")
        h.settle()
        result = h.ac.focus_node.manager.dispatch_key(KeyEvent(Keys.DOWN))
        assert result is KeyEventResult.HANDLED
        assert h.ac.options_focus_node.has_primary_focus
        assert h.ac.active_query.query == "al"

    def test_down_ignored_when_options_focused(self, h):
        h.type("@al")
        h.settle()
        h.ac.options_focus_node.request_focus()
        assert h.ac.on_key_event(KeyEvent(Keys.DOWN)) is False

    def test_key_up_ignored(self, h):
        h.type("@al")
        h.settle()
        assert h.ac.on_key_event(KeyEvent(Keys.ESCAPE, is_key_down=False)) is False
        assert h.ac.active_query is not None

    def test_other_keys_ignored(self, h):
        h.type("@al")
        h.settle()
        assert h.ac.on_key_event(KeyEvent("a")) is False

    def test_enter_and_space_from_descendant_are_consumed(self, h):
        child = FocusNode(h.ac.focus_node.manager, parent=h.ac.focus_node)
        child.request_focus()
        manager = h.ac.focus_node.manager
        assert manager.dispatch_key(KeyEvent(Keys.SPACE)) is KeyEventResult.HANDLED
        assert manager.dispatch_key(KeyEvent(Keys.ENTER)) is KeyEventResult.HANDLED

    def test_enter_and_space_on_field_pass_through(self, h):
        manager = h.ac.focus_node.manager
        assert manager.dispatch_key(KeyEvent(Keys.SPACE)) is KeyEventResult.IGNORED
        assert manager.dispatch_key(KeyEvent(Keys.ENTER)) is KeyEventResult.IGNORED

    def test_handle_back(self, h):
        assert h.ac.handle_back() is False
        h.type("@al")
        h.settle()
        assert h.ac.handle_back() is True
        assert h.ac.active_query is None


class TestExternalCapabilities:
    def setup_method(self):
        self.manager = FocusManager()
        self.original_calls = []
        self.node = FocusNode(self.manager, on_key_event=self._original)
        self.buffer = TextEditingBuffer()
        self.scheduler = ManualScheduler()
        self.ac = MultiTriggerAutocomplete(
            [AT],
            text_editing_buffer=self.buffer,
            focus_node=self.node,
            scheduler=self.scheduler,
        )

    def _original(self, node, event):
        self.original_calls.append(event.key)
        return KeyEventResult.HANDLED if event.key == "x" else KeyEventResult.IGNORED

    def test_original_handler_chained(self):
        self.ac.attach()
        self.node.request_focus()
        assert self.manager.dispatch_key(KeyEvent("x")) is KeyEventResult.HANDLED
        assert self.original_calls == ["x"]

    def test_escape_reaches_wrapper(self):
        self.ac.attach()
        self.node.request_focus()
        self.buffer.set_value("@al")
        self.scheduler.advance(0.3)
        assert self.manager.dispatch_key(KeyEvent(Keys.ESCAPE)) is KeyEventResult.HANDLED
        assert self.ac.active_query is None

    def test_detach_restores_and_keeps_external_objects(self):
        self.ac.attach()
        self.ac.detach()
        assert self.node.on_key_event == self._original
        assert self.node.parent is None
        assert not self.node.disposed
        assert not self.buffer.disposed
        self.buffer.set_value("@al")
        assert self.scheduler.pending == 0

    def test_keys_reach_wrapper_when_node_has_parent(self):
        screen = FocusNode(self.manager, debug_label="screen")
        node = FocusNode(self.manager, parent=screen)
        buffer = TextEditingBuffer()
        ac = MultiTriggerAutocomplete(
            [AT],
            text_editing_buffer=buffer,
            focus_node=node,
            scheduler=self.scheduler,
        ).attach()
        assert ac.wrapper_focus_node.parent is screen
        node.request_focus()
        buffer.set_value("@al")
        self.scheduler.advance(0.3)
        assert ac.should_show_options

        assert self.manager.dispatch_key(KeyEvent(Keys.DOWN)) is KeyEventResult.HANDLED
        assert ac.options_focus_node.has_primary_focus
        assert screen.has_focus

        assert self.manager.dispatch_key(KeyEvent(Keys.ESCAPE)) is KeyEventResult.HANDLED
        assert ac.active_query is None
        assert node.has_primary_focus

    def test_detach_restores_existing_parent(self):
        screen = FocusNode(self.manager, debug_label="screen")
        node = FocusNode(self.manager, parent=screen)
        ac = MultiTriggerAutocomplete(
            [AT],
            text_editing_buffer=TextEditingBuffer(),
            focus_node=node,
            scheduler=self.scheduler,
        ).attach()
        assert node.parent is ac.wrapper_focus_node
        ac.detach()
        assert node.parent is screen
        assert ac.wrapper_focus_node.parent is None

    def test_attach_evaluates_existing_text(self):
        self.buffer.set_value("@al")
        self.node.request_focus()
        self.ac.attach()
        assert self.ac.active_query.query == "al"


class TestDetach:
    def test_cancels_pending_debounce_and_drops_state(self, h):
        h.type("@al")
        h.settle()
        h.type("@ali")
        h.ac.detach()
        assert h.scheduler.pending == 0
        assert h.ac.active_query is None
        assert not h.ac.attached

    def test_disposes_owned_objects(self, h):
        buffer = h.ac.text_editing_buffer
        node = h.ac.focus_node
        h.ac.detach()
        assert buffer.disposed
        assert node.disposed
        assert h.ac.options_focus_node.disposed

    def test_detach_twice(self, h):
        h.ac.detach()
        h.ac.detach()
        assert not h.ac.attached


class TestRegisterTriggers:
    def test_unregistered_active_trigger_closes(self, h):
        h.type("@al")
        h.settle()
        h.ac.register_triggers([HASH])
        assert h.ac.active_query is None

    def test_still_registered_trigger_stays(self, h):
        h.type("@al")
        h.settle()
        h.ac.register_triggers([AutocompleteTrigger("@")])
        assert h.ac.active_query is not None


class TestInitialValue:
    def test_attach_shows_for_initial_value(self):
        ac = MultiTriggerAutocomplete(
            [AT],
            initial_value=TextEditingValue.with_cursor_at_end("@bo"),
            scheduler=ManualScheduler(),
        )
        ac.attach()
        assert ac.active_query.query == "bo"
        assert ac.state is AutocompleteState.SUPPRESSED
        ac.focus_node.request_focus()
        assert ac.state is AutocompleteState.OPEN
