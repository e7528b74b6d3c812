"""Text input with trigger-based autocomplete (``@``, ``#``, ``:``, ``/`` ...).

:class:`TriggerInput` wraps a Textual :class:`~textual.widgets.Input` and
drives a :class:`~multitrigger.context.autocomplete.MultiTriggerAutocomplete`
with it: edits are copied into the shared text buffer, Textual focus is
mirrored into focus nodes (and back), and keys are offered to the
autocomplete before the input sees them.  The options surface built by the
active trigger's renderer is mounted above or below the input.
"""

from __future__ import annotations

from typing import Iterable, Optional

from textual import events
from textual.containers import Horizontal
from textual.message import Message
from textual.timer import Timer
from textual.widget import Widget
from textual.widgets import Input

from multitrigger.config import AutocompleteConfig, FocusLossPolicy, OptionsAlignment
from multitrigger.context.autocomplete import MultiTriggerAutocomplete
from multitrigger.context.focus import FocusManager, FocusNode, KeyEvent, KeyEventResult
from multitrigger.context.text_buffer import TextEditingBuffer, TextEditingValue, TextSelection
from multitrigger.context.trigger import AutocompleteTrigger
from multitrigger.core.tracer import Tracer


class _TimerHandle:
    """Adapts a Textual :class:`Timer` to the scheduler handle protocol."""

    def __init__(self, timer: Timer):
        self._timer = timer

    def cancel(self) -> None:
        self._timer.stop()


class TriggerInputField(Input):
    """The inner input; offers every key to the focus chain first."""

    def __init__(self, focus_manager: FocusManager, **kwargs):
        super().__init__(**kwargs)
        self.focus_manager = focus_manager

    def on_key(self, event: events.Key) -> None:
        result = self.focus_manager.dispatch_key(KeyEvent(event.key))
        if result is KeyEventResult.HANDLED:
            event.prevent_default()
            event.stop()


class TriggerInput(Widget):
    """Composite widget: an input plus the autocomplete options surface.

    Args:
        triggers: Triggers in priority order.  Their ``options_renderer``
            must return a Textual widget (or ``None`` to show nothing).
        config: Optional settings; explicit keyword arguments win over it.
        debounce_interval: Seconds of quiet typing before evaluating.
        options_alignment: Where the options appear relative to the input.
        options_width_factor: Options width relative to the input.
        focus_loss_policy: See :class:`~multitrigger.config.FocusLossPolicy`.
        tracer: Diagnostic output.
        placeholder: Placeholder of the inner input.
        id: Optional widget identifier.
    """

    DEFAULT_CSS = """
    TriggerInput {
        height: auto;
    }

    #trigger_input {
        border: round $accent;
        padding: 0 1;
    }

    #options {
        height: auto;
        display: none;
    }
    """

    def __init__(
        self,
        *,
        triggers: Iterable[AutocompleteTrigger],
        config: Optional[AutocompleteConfig] = None,
        debounce_interval: Optional[float] = None,
        options_alignment: Optional[OptionsAlignment] = None,
        options_width_factor: Optional[float] = None,
        focus_loss_policy: Optional[FocusLossPolicy] = None,
        tracer: Optional[Tracer] = None,
        placeholder: str = "Type @ # : or /…",
        id: Optional[str] = None,
    ):
        super().__init__(id=id)
        self.placeholder = placeholder
        self.buffer = TextEditingBuffer(TextEditingValue("", TextSelection.collapsed(0)))
        self.focus_manager = FocusManager()
        self.input_focus_node = FocusNode(self.focus_manager, debug_label="TriggerInput")

        def pick(value, attr, default):
            if value is not None:
                return value
            return getattr(config, attr) if config is not None else default

        self.autocomplete = MultiTriggerAutocomplete(
            triggers,
            text_editing_buffer=self.buffer,
            focus_node=self.input_focus_node,
            debounce_interval=pick(debounce_interval, "debounce_interval", 0.3),
            options_alignment=pick(options_alignment, "options_alignment", OptionsAlignment.BOTTOM),
            options_width_factor=pick(options_width_factor, "options_width_factor", 1.0),
            focus_loss_policy=pick(focus_loss_policy, "focus_loss_policy", FocusLossPolicy.CLOSE),
            scheduler=self._schedule,
            tracer=tracer,
            announcer=self._announce,
        )
        self._options_widget: Optional[Widget] = None
        self.last_announcement = ""

    # ─────────────────────────────────────
    # UI
    # ─────────────────────────────────────

    def compose(self):
        """Build the widget tree; the options go above the input for top alignments."""
        self._field = TriggerInputField(
            self.focus_manager,
            placeholder=self.placeholder,
            id="trigger_input",
        )
        self._options = Horizontal(id="options")

        anchor = self.autocomplete.options_anchor
        self._options.styles.align_horizontal = anchor.follower.horizontal
        if anchor.above:
            yield self._options
            yield self._field
        else:
            yield self._field
            yield self._options

    def on_mount(self) -> None:
        self.buffer.subscribe(self._on_buffer_changed)
        self.input_focus_node.subscribe(self._on_input_node_changed)
        self.autocomplete.options_focus_node.subscribe(self._on_options_node_changed)
        self.autocomplete.subscribe(self._on_autocomplete_changed)
        self.autocomplete.attach()
        self._field.focus()

    def on_unmount(self) -> None:
        self.autocomplete.detach()
        self.buffer.dispose()
        self.input_focus_node.dispose()

    @property
    def value(self) -> str:
        return self.buffer.text

    # ─────────────────────────────────────
    # Textual -> autocomplete
    # ─────────────────────────────────────

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input is not self._field:
            return
        event.stop()
        self.buffer.value = TextEditingValue(
            event.value,
            TextSelection.collapsed(self._field.cursor_position),
        )

    def on_descendant_focus(self, event: events.DescendantFocus) -> None:
        self._sync_focus()

    def on_descendant_blur(self, event: events.DescendantBlur) -> None:
        self._sync_focus()

    def _sync_focus(self) -> None:
        focused = self.screen.focused
        if focused is self._field:
            self.input_focus_node.request_focus()
        elif focused is not None and self._owns_option_widget(focused):
            self.autocomplete.options_focus_node.request_focus()
        else:
            self.focus_manager.focus(None)

    def _owns_option_widget(self, widget: Widget) -> bool:
        options = self._options_widget
        return options is not None and (widget is options or options in widget.ancestors)

    # ─────────────────────────────────────
    # autocomplete -> Textual
    # ─────────────────────────────────────

    def _schedule(self, delay: float, callback) -> _TimerHandle:
        return _TimerHandle(self.set_timer(delay, callback))

    def _announce(self, message: str) -> None:
        self.last_announcement = message

    def _on_buffer_changed(self) -> None:
        value = self.buffer.value
        if self._field.value != value.text:
            self._field.value = value.text
        if value.selection.is_valid and self._field.cursor_position != value.selection.base_offset:
            self._field.cursor_position = value.selection.base_offset

    def _on_input_node_changed(self) -> None:
        if self.input_focus_node.has_primary_focus and self.screen.focused is not self._field:
            self._field.focus()

    def _on_options_node_changed(self) -> None:
        widget = self._options_widget
        if (
            widget is not None
            and self.autocomplete.options_focus_node.has_primary_focus
            and self.screen.focused is not widget
        ):
            widget.focus()

    def _on_autocomplete_changed(self, autocomplete: MultiTriggerAutocomplete) -> None:
        self._options.remove_children()
        self._options_widget = None

        query = autocomplete.active_query
        trigger = autocomplete.active_trigger
        widget = None
        if autocomplete.should_show_options and trigger is not None and trigger.options_renderer is not None:
            widget = trigger.options_renderer(
                query,
                self.buffer,
                autocomplete.options_focus_node,
                autocomplete,
            )

        if widget is None:
            self._options.display = False
            return

        factor = autocomplete.options_width_factor
        widget.styles.width = f"{factor * 100:g}%" if factor else "auto"
        self._options_widget = widget
        self._options.mount(widget)
        self._options.display = True

    # ─────────────────────────────────────
    # Submit / Events
    # ─────────────────────────────────────

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Post :class:`Submitted` and clear the input, unless options are open."""
        if event.input is not self._field:
            return
        event.stop()
        if self.autocomplete.should_show_options:
            return
        text = event.value or ""
        if not text:
            return

        self.post_message(self.Submitted(text))
        self.buffer.set_value("")

    class Submitted(Message):
        """Message posted when the user submits text via Enter.

        Attributes:
            value: The submitted text.
        """

        def __init__(self, value: str):
            super().__init__()
            self.value = value
