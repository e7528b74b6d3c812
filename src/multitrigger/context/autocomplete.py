"""Coordinator deciding when an autocomplete query is open.

:class:`MultiTriggerAutocomplete` owns the active query for one text input.
It listens to the text buffer (debounced), to the focus nodes of the input
and of the options surface, and to key events bubbling to its wrapper node.
On each settled change it asks every registered trigger, in registration
order, whether it is being typed; the first match wins and becomes the
active query.  Observers are notified so the host can show, update or hide
the options surface built by the active trigger's renderer.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Iterable, Optional

from multitrigger.config import (
    AutocompleteConfig,
    FocusLossPolicy,
    OptionsAlignment,
    OptionsAnchor,
)
from multitrigger.context.debounce import Debouncer, Scheduler
from multitrigger.context.focus import (
    FocusManager,
    FocusNode,
    KeyEvent,
    KeyEventHandler,
    KeyEventResult,
    Keys,
)
from multitrigger.context.text_buffer import TextEditingBuffer, TextEditingValue, TextSelection
from multitrigger.context.trigger import AutocompleteQuery, AutocompleteTrigger
from multitrigger.core.exceptions import AutocompleteConfigurationError
from multitrigger.core.tracer import Tracer


SUGGESTIONS_AVAILABLE = "Autocomplete suggestions available. Press Arrow Down to navigate."
SUGGESTIONS_HIDDEN = "Autocomplete suggestions hidden."


class AutocompleteState(Enum):
    IDLE = "idle"
    PENDING = "pending"
    OPEN = "open"
    SUPPRESSED = "suppressed"


AutocompleteListener = Callable[["MultiTriggerAutocomplete"], None]


class MultiTriggerAutocomplete:
    """Stateful autocomplete session for a single text input.

    The buffer and the input's focus node are either both supplied by the
    host or both created here.  Whatever is created here is disposed on
    :meth:`detach`; supplied objects are only unhooked.

    Args:
        autocomplete_triggers: Triggers in priority order.  Duplicates
            (equal matching fields) are dropped, keeping the first.
        text_editing_buffer: Host-owned buffer of the input.
        focus_node: Host-owned focus node of the input.
        initial_value: Starting value of an internally created buffer.
            Mutually exclusive with *text_editing_buffer*.
        focus_manager: Manager for internally created nodes.  Ignored when
            *focus_node* is given (its manager is used).
        debounce_interval: Seconds of quiet before triggers are evaluated.
        options_alignment: Placement hint forwarded to the renderer.
        options_width_factor: Width hint forwarded to the renderer.
        focus_loss_policy: Whether blurring closes or only hides the query.
        scheduler: Timer factory for debouncing, see
            :mod:`multitrigger.context.debounce`.
        tracer: Diagnostic output; disabled by default.
        announcer: Receives short accessibility announcements.

    Raises:
        AutocompleteConfigurationError: Mutually exclusive or invalid
            arguments.
    """

    def __init__(
        self,
        autocomplete_triggers: Iterable[AutocompleteTrigger] = (),
        *,
        text_editing_buffer: Optional[TextEditingBuffer] = None,
        focus_node: Optional[FocusNode] = None,
        initial_value: Optional[TextEditingValue] = None,
        focus_manager: Optional[FocusManager] = None,
        debounce_interval: float = 0.3,
        options_alignment: OptionsAlignment = OptionsAlignment.BOTTOM,
        options_width_factor: Optional[float] = 1.0,
        focus_loss_policy: FocusLossPolicy = FocusLossPolicy.CLOSE,
        scheduler: Optional[Scheduler] = None,
        tracer: Optional[Tracer] = None,
        announcer: Optional[Callable[[str], None]] = None,
    ):
        if text_editing_buffer is not None and initial_value is not None:
            raise AutocompleteConfigurationError(
                "text_editing_buffer and initial_value cannot be simultaneously defined."
            )
        if (text_editing_buffer is None) != (focus_node is None):
            raise AutocompleteConfigurationError(
                "text_editing_buffer and focus_node must be supplied together."
            )
        if debounce_interval < 0:
            raise AutocompleteConfigurationError(
                f"debounce_interval must be >= 0, got {debounce_interval}"
            )

        self.options_alignment = options_alignment
        self.options_width_factor = options_width_factor
        self.focus_loss_policy = focus_loss_policy
        self._tracer = tracer or Tracer()
        self._announcer = announcer
        self._debouncer = Debouncer(debounce_interval, scheduler)

        self._owns_buffer = text_editing_buffer is None
        self._buffer = text_editing_buffer or TextEditingBuffer(initial_value)

        self._owns_focus_node = focus_node is None
        manager = focus_node.manager if focus_node is not None else (focus_manager or FocusManager())
        self._wrapper_focus_node = FocusNode(
            manager,
            debug_label="MultiTriggerAutocomplete-Wrapper",
            on_key_event=self._handle_wrapper_key_event,
        )
        self._options_focus_node = FocusNode(
            manager,
            debug_label="MultiTriggerAutocomplete-OptionsView",
            parent=self._wrapper_focus_node,
        )
        if focus_node is None:
            focus_node = FocusNode(
                manager,
                debug_label="AutocompleteTextField-Internal",
                parent=self._wrapper_focus_node,
                on_key_event=self._handle_text_field_key_event,
            )
        self._focus_node = focus_node
        self._original_key_handler: Optional[KeyEventHandler] = None
        self._original_parent: Optional[FocusNode] = None

        self._current_query: Optional[AutocompleteQuery] = None
        self._current_trigger: Optional[AutocompleteTrigger] = None
        self._suppressed = False
        self._last_field_text = ""
        self._attached = False
        self._restoring_focus = False
        self._notified_visible = False
        self._listeners: list[AutocompleteListener] = []

        self._triggers: tuple[AutocompleteTrigger, ...] = ()
        self.register_triggers(autocomplete_triggers)

    @classmethod
    def from_config(
        cls,
        config: AutocompleteConfig,
        autocomplete_triggers: Iterable[AutocompleteTrigger] = (),
        **kwargs,
    ) -> "MultiTriggerAutocomplete":
        """Build a coordinator using the settings of *config*."""
        return cls(
            autocomplete_triggers,
            debounce_interval=config.debounce_interval,
            options_alignment=config.options_alignment,
            options_width_factor=config.options_width_factor,
            focus_loss_policy=config.focus_loss_policy,
            **kwargs,
        )

    # ──────────────────────────────
    # read-only state
    # ──────────────────────────────

    @property
    def autocomplete_triggers(self) -> tuple[AutocompleteTrigger, ...]:
        return self._triggers

    @property
    def active_query(self) -> Optional[AutocompleteQuery]:
        return self._current_query

    @property
    def active_trigger(self) -> Optional[AutocompleteTrigger]:
        return self._current_trigger

    @property
    def suppressed(self) -> bool:
        return self._suppressed

    @property
    def last_observed_text(self) -> str:
        return self._last_field_text

    @property
    def text_editing_buffer(self) -> TextEditingBuffer:
        return self._buffer

    @property
    def focus_node(self) -> FocusNode:
        return self._focus_node

    @property
    def options_focus_node(self) -> FocusNode:
        return self._options_focus_node

    @property
    def wrapper_focus_node(self) -> FocusNode:
        return self._wrapper_focus_node

    @property
    def debounce_interval(self) -> float:
        return self._debouncer.interval

    @property
    def options_anchor(self) -> OptionsAnchor:
        return self.options_alignment.anchor(self.options_width_factor)

    @property
    def attached(self) -> bool:
        return self._attached

    @property
    def should_show_options(self) -> bool:
        return (
            not self._suppressed
            and (self._focus_node.has_focus or self._options_focus_node.has_focus)
            and self._current_query is not None
            and self._current_trigger is not None
        )

    @property
    def state(self) -> AutocompleteState:
        """Current state of the session.

        A visible query reports ``OPEN`` even while a new edit is being
        debounced; ``PENDING`` only applies when no query is active yet.
        """
        if self._current_query is not None:
            return AutocompleteState.OPEN if self.should_show_options else AutocompleteState.SUPPRESSED
        if self._debouncer.pending:
            return AutocompleteState.PENDING
        return AutocompleteState.IDLE

    # ──────────────────────────────
    # observers
    # ──────────────────────────────

    def subscribe(self, listener: AutocompleteListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: AutocompleteListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        self._notified_visible = self.should_show_options
        for listener in list(self._listeners):
            listener(self)

    def _announce(self, message: str) -> None:
        self._tracer.info(message)
        if self._announcer is not None:
            self._announcer(message)

    # ──────────────────────────────
    # lifecycle
    # ──────────────────────────────

    def register_triggers(self, autocomplete_triggers: Iterable[AutocompleteTrigger]) -> None:
        """Replace the registered triggers, keeping their order.

        An active query whose trigger is no longer registered is closed.
        """
        self._triggers = tuple(dict.fromkeys(autocomplete_triggers))
        self._tracer.data("triggers", " ".join(t.trigger_character for t in self._triggers))
        if self._current_trigger is not None and self._current_trigger not in self._triggers:
            self.close_options()

    def attach(self) -> "MultiTriggerAutocomplete":
        """Start listening to the buffer, focus nodes and keys.

        A non-empty buffer is evaluated right away, without debouncing.
        """
        if self._attached:
            return self
        self._attached = True

        self._buffer.subscribe(self.on_text_changed)
        if not self._owns_focus_node:
            self._original_key_handler = self._focus_node.on_key_event
            self._focus_node.on_key_event = self._chained_text_field_key_event
            self._original_parent = self._focus_node.parent
            self._wrapper_focus_node.parent = self._original_parent
            self._focus_node.parent = self._wrapper_focus_node
        self._focus_node.subscribe(self.on_focus_changed)
        self._options_focus_node.subscribe(self.on_focus_changed)

        self._tracer.step(f"autocomplete attached to {self._focus_node.debug_label}")
        if self._buffer.text:
            found = self._invoked_trigger_with_query(self._buffer.value)
            if found is not None:
                self.show_options(*found)
        return self

    def detach(self) -> None:
        """Cancel pending work, unhook from the host and drop all state."""
        if not self._attached:
            return
        self._debouncer.cancel()

        self._buffer.unsubscribe(self.on_text_changed)
        self._focus_node.unsubscribe(self.on_focus_changed)
        self._options_focus_node.unsubscribe(self.on_focus_changed)

        self._current_query = None
        self._current_trigger = None
        self._suppressed = False
        self._last_field_text = ""
        self._listeners.clear()
        self._attached = False

        if self._owns_buffer:
            self._buffer.dispose()
        if self._owns_focus_node:
            self._focus_node.dispose()
        else:
            self._focus_node.on_key_event = self._original_key_handler
            if self._focus_node.parent is self._wrapper_focus_node:
                self._focus_node.parent = self._original_parent
            self._original_key_handler = None
            self._original_parent = None
        self._wrapper_focus_node.parent = None
        self._options_focus_node.dispose()
        self._wrapper_focus_node.dispose()
        self._tracer.step("autocomplete detached")

    # ──────────────────────────────
    # commands
    # ──────────────────────────────

    def show_options(self, query: AutocompleteQuery, trigger: AutocompleteTrigger) -> None:
        """Make *query* the active one.

        Re-showing the query that is already visible does nothing, so typing
        inside an open query does not re-render or re-announce.
        """
        unchanged = query == self._current_query and trigger == self._current_trigger
        was_hidden = self._current_query is None or self._suppressed

        self._current_query = query
        self._current_trigger = trigger
        self._suppressed = False

        if unchanged and not was_hidden:
            return

        self._tracer.debug(
            f"show options trigger={trigger.trigger_character!r} "
            f"query={query.query!r} range={query.range}"
        )
        self._notify()
        if self.should_show_options and not self._options_focus_node.has_focus:
            self._announce(SUGGESTIONS_AVAILABLE)

    def close_options(self) -> None:
        """Clear the active query.  Does nothing when none is active.

        When the options surface holds focus it is handed back to the input.
        """
        if self._current_query is None:
            return
        self._close(restore_focus=True)

    def _close(self, restore_focus: bool) -> None:
        self._tracer.debug("close options")
        self._current_query = None
        self._current_trigger = None
        self._notify()
        if restore_focus and self._options_focus_node.has_focus:
            self._restoring_focus = True
            try:
                self._focus_node.request_focus()
            finally:
                self._restoring_focus = False

    def accept_autocomplete_option(self, option: str, keep_trigger_character: bool = True) -> None:
        """Replace the active query with *option* and close the options.

        A trailing space is appended unless the text after the query already
        starts with one, in which case the cursor is placed after that space.

        Args:
            option: Completion text.  Empty strings are ignored.
            keep_trigger_character: When ``False`` the trigger symbol is
                removed together with the query.
        """
        if not option:
            return

        query = self._current_query
        trigger = self._current_trigger
        if query is None or trigger is None:
            return

        text = self._buffer.text
        start, end = query.range
        if not keep_trigger_character:
            start -= len(trigger.trigger_character)

        if start < 0 or end > len(text) or start > end:
            self._tracer.warn(f"stale query range {query.range} for text of length {len(text)}")
            self.close_options()
            return

        already_contains_space = text[end:].startswith(" ")
        if not already_contains_space:
            option += " "

        selection_offset = start + len(option)
        if already_contains_space:
            selection_offset += 1

        self._tracer.data("accept", option)
        self._buffer.value = TextEditingValue(
            text=text[:start] + option + text[end:],
            selection=TextSelection.collapsed(selection_offset),
        )
        self.close_options()

    def handle_back(self) -> bool:
        """Close visible options instead of navigating back.

        Returns:
            ``True`` when options were visible and got closed.
        """
        if not self.should_show_options:
            return False
        self.close_options()
        return True

    # ──────────────────────────────
    # events
    # ──────────────────────────────

    def on_text_changed(self) -> bool:
        """Schedule a debounced evaluation of the buffer.

        Returns:
            ``True`` when an evaluation was scheduled.
        """
        if not self._attached:
            return False
        self._debouncer.call(self._on_debounce_fired)
        return True

    def _on_debounce_fired(self) -> None:
        if not self._attached:
            return
        value = self._buffer.value

        # sin cambios y opciones ya abiertas
        if value.text == self._last_field_text and self._current_query is not None:
            return

        self._tracer.debug(f"evaluating {value.text!r} cursor={value.selection.base_offset}")
        self._last_field_text = value.text

        if not value.text:
            self._suppressed = False
            self.close_options()
            return

        found = self._invoked_trigger_with_query(value)
        if found is None:
            self._suppressed = False
            self.close_options()
            return

        self.show_options(*found)

    def on_focus_changed(self) -> bool:
        """React to focus moving into or out of the input and options.

        Returns:
            ``True`` when the change affected the session.
        """
        if not self._attached:
            return False

        if not self._focus_node.has_focus and not self._options_focus_node.has_focus:
            self._tracer.debug("focus lost")
            self._suppressed = True
            if self._current_query is not None and self.focus_loss_policy is FocusLossPolicy.CLOSE:
                self._close(restore_focus=False)
            else:
                self._notify()
            return True

        if self._focus_node.has_focus:
            self._tracer.debug("focus gained")
            if self._restoring_focus:
                return False
            value = self._buffer.value
            found = self._invoked_trigger_with_query(value) if value.text else None
            if found is not None:
                self.show_options(*found)
            else:
                self.close_options()
            self._suppressed = False
            if self.should_show_options != self._notified_visible:
                self._notify()
            return True

        return False

    def on_key_event(self, event: KeyEvent) -> bool:
        """Handle Escape / ArrowDown as the wrapper around the input would.

        Returns:
            ``True`` when the key was consumed.
        """
        return self._handle_wrapper_key_event(self._wrapper_focus_node, event) is KeyEventResult.HANDLED

    def _handle_wrapper_key_event(self, node: FocusNode, event: KeyEvent) -> KeyEventResult:
        if not event.is_key_down or not self.should_show_options:
            return KeyEventResult.IGNORED

        if event.key == Keys.ESCAPE:
            self._tracer.debug("escape: closing options")
            self.close_options()
            self._announce(SUGGESTIONS_HIDDEN)
            return KeyEventResult.HANDLED

        if event.key == Keys.DOWN and not self._options_focus_node.has_focus:
            self._tracer.debug("down: moving focus to options")
            self._options_focus_node.request_focus()
            return KeyEventResult.HANDLED

        return KeyEventResult.IGNORED

    def _handle_text_field_key_event(self, node: FocusNode, event: KeyEvent) -> KeyEventResult:
        # otro widget dentro del campo tiene el foco principal
        if event.is_key_down and event.key in (Keys.ENTER, Keys.SPACE) and not node.has_primary_focus:
            return KeyEventResult.HANDLED
        return KeyEventResult.IGNORED

    def _chained_text_field_key_event(self, node: FocusNode, event: KeyEvent) -> KeyEventResult:
        result = self._handle_text_field_key_event(node, event)
        if result is KeyEventResult.HANDLED:
            return result
        if self._original_key_handler is not None:
            return self._original_key_handler(node, event)
        return KeyEventResult.IGNORED

    # ──────────────────────────────
    # helpers
    # ──────────────────────────────

    def _invoked_trigger_with_query(
        self, value: TextEditingValue
    ) -> Optional[tuple[AutocompleteQuery, AutocompleteTrigger]]:
        for trigger in self._triggers:
            query = trigger.invoking_trigger(value)
            if query is not None:
                return query, trigger
        return None
