"""Trigger definitions and the matcher that detects an in-progress query.

An :class:`AutocompleteTrigger` describes a symbol such as ``@`` or ``#``
that starts a query.  :func:`match` inspects the text before the cursor and,
when the trigger is being typed, returns the :class:`AutocompleteQuery`
holding the characters between the trigger and the cursor.

Everything here is pure: no state, no side effects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional

from multitrigger.context.text_buffer import TextEditingValue, TextSelection
from multitrigger.core.exceptions import AutocompleteConfigurationError

if TYPE_CHECKING:
    from multitrigger.context.autocomplete import MultiTriggerAutocomplete
    from multitrigger.context.focus import FocusNode
    from multitrigger.context.text_buffer import TextEditingBuffer


OptionsRenderer = Callable[
    ["AutocompleteQuery", "TextEditingBuffer", "FocusNode", "MultiTriggerAutocomplete"],
    Any,
]
"""Builds the options surface for a query.  Only the host calls it."""


@dataclass(frozen=True)
class AutocompleteQuery:
    """The text typed after a trigger.

    Attributes:
        query: Characters between the end of the trigger and the cursor.
        selection: Half-open span of *query* inside the buffer; ``base_offset``
            is the first query character and ``extent_offset`` the cursor.
    """

    query: str
    selection: TextSelection

    @property
    def range(self) -> tuple[int, int]:
        return self.selection.base_offset, self.selection.extent_offset


@dataclass(frozen=True)
class AutocompleteTrigger:
    """A symbol that opens an autocomplete query.

    Equality and hashing only look at the matching fields; the renderer is
    carried along but never compared.

    Attributes:
        trigger_character: The trigger string, e.g. ``"@"``.  May be longer
            than one character.
        options_renderer: Callback the host uses to build the options surface.
        only_at_start: Recognise the trigger only at offset 0.
        only_after_whitespace: Recognise the trigger only at the start of the
            text or right after a space or newline.
        minimum_query_length: Characters that must follow the trigger before
            the query is reported.
    """

    trigger_character: str
    options_renderer: Optional[OptionsRenderer] = field(default=None, compare=False, hash=False, repr=False)
    only_at_start: bool = False
    only_after_whitespace: bool = True
    minimum_query_length: int = 0

    def __post_init__(self) -> None:
        if not self.trigger_character:
            raise AutocompleteConfigurationError("trigger_character must not be empty")
        if self.minimum_query_length < 0:
            raise AutocompleteConfigurationError(
                f"minimum_query_length must be >= 0, got {self.minimum_query_length}"
            )

    def invoking_trigger(self, value: TextEditingValue) -> Optional[AutocompleteQuery]:
        """Return the query this trigger is invoking in *value*, if any.

        The cursor is the selection's base offset.  An invalid selection never
        matches.
        """
        if not value.selection.is_valid:
            return None
        return match(self, value.text, value.selection.base_offset)


def match(trigger: AutocompleteTrigger, text: str, cursor_offset: int) -> Optional[AutocompleteQuery]:
    """Detect whether *trigger* is being typed at *cursor_offset*.

    Args:
        trigger: The trigger definition to test.
        text: Full buffer text.
        cursor_offset: Cursor position; must satisfy
            ``0 <= cursor_offset <= len(text)``.

    Returns:
        The active :class:`AutocompleteQuery`, or ``None`` when the trigger
        does not match (including when the offset is out of range).
    """
    if cursor_offset < 0 or cursor_offset > len(text):
        return None

    trigger_pos = text.rfind(trigger.trigger_character, 0, cursor_offset)
    if trigger_pos == -1:
        return None

    if trigger.only_at_start and trigger_pos != 0:
        return None

    before = text[:trigger_pos]
    if trigger.only_after_whitespace and before and not before.endswith((" ", "\n")):
        return None

    query_start = trigger_pos + len(trigger.trigger_character)
    query_end = cursor_offset
    if query_start > query_end:
        return None

    query = text[query_start:query_end]
    # un espacio abandona el token
    if any(ch.isspace() for ch in query):
        return None

    if len(query) < trigger.minimum_query_length:
        return None

    return AutocompleteQuery(
        query=query,
        selection=TextSelection(query_start, query_end),
    )
