"""Options surface listing the completions of the active query.

:func:`provider_renderer` turns a completion provider into the
``options_renderer`` of an :class:`~multitrigger.context.trigger.AutocompleteTrigger`:
each time the query changes it builds a :class:`SuggestionList` with the
provider's items for the typed prefix.
"""

from __future__ import annotations

from typing import Callable, Sequence

from textual import events
from textual.widgets import OptionList
from textual.widgets.option_list import Option

from multitrigger.context.autocomplete import MultiTriggerAutocomplete
from multitrigger.context.focus import FocusNode, KeyEvent, KeyEventResult
from multitrigger.context.text_buffer import TextEditingBuffer
from multitrigger.context.trigger import AutocompleteQuery, OptionsRenderer


CompletionProvider = Callable[[str], Sequence[str]]
"""Receives the query typed after the trigger and returns completions."""


class SuggestionList(OptionList):
    """Selectable list of completions bound to an autocomplete session.

    Selecting an item accepts it into the buffer.  Keys the list does not
    use (Escape) bubble through the focus nodes to the autocomplete.

    Args:
        items: Completion values, in display order.
        autocomplete: Session that receives the accepted value.
        focus_node: The session's options-surface focus node.
        icon: Text drawn before every item.
        keep_trigger_character: Forwarded to
            :meth:`MultiTriggerAutocomplete.accept_autocomplete_option`.
        resolve: Maps a selected value to the inserted text.
    """

    DEFAULT_CSS = """
    SuggestionList {
        height: auto;
        max-height: 8;
        border: round $accent;
    }
    """

    def __init__(
        self,
        items: Sequence[str],
        *,
        autocomplete: MultiTriggerAutocomplete,
        focus_node: FocusNode,
        icon: str = "",
        keep_trigger_character: bool = True,
        resolve: Callable[[str], str] | None = None,
    ):
        super().__init__(*[Option(f"{icon}{item}", id=item) for item in items], classes="suggestions")
        self.autocomplete = autocomplete
        self.focus_node = focus_node
        self.keep_trigger_character = keep_trigger_character
        self._resolve = resolve

    def on_mount(self) -> None:
        if self.option_count:
            self.highlighted = 0

    def on_key(self, event: events.Key) -> None:
        result = self.focus_node.manager.dispatch_key(KeyEvent(event.key))
        if result is KeyEventResult.HANDLED:
            event.prevent_default()
            event.stop()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        event.stop()
        value = event.option.id or str(event.option.prompt)
        if self._resolve is not None:
            value = self._resolve(value)
        self.autocomplete.accept_autocomplete_option(
            value,
            keep_trigger_character=self.keep_trigger_character,
        )


def provider_renderer(provider: CompletionProvider) -> OptionsRenderer:
    """Build an options renderer listing *provider*'s completions.

    The provider may expose ``icon``, ``keep_trigger_character`` and a
    ``resolve(value)`` method; they are optional.  An empty result renders
    nothing.
    """

    def render(
        query: AutocompleteQuery,
        buffer: TextEditingBuffer,
        focus_node: FocusNode,
        autocomplete: MultiTriggerAutocomplete,
    ) -> SuggestionList | None:
        items = list(provider(query.query))
        if not items:
            return None
        return SuggestionList(
            items,
            autocomplete=autocomplete,
            focus_node=focus_node,
            icon=getattr(provider, "icon", ""),
            keep_trigger_character=getattr(provider, "keep_trigger_character", True),
            resolve=getattr(provider, "resolve", None),
        )

    return render
