"""Observable text buffer shared between an input widget and the autocomplete.

A :class:`TextEditingBuffer` holds the current :class:`TextEditingValue`
(text plus selection) and notifies subscribed listeners whenever that value
changes.  The host widget writes user edits into the buffer; the
autocomplete coordinator reads from it and writes the accepted completion
back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional


@dataclass(frozen=True)
class TextSelection:
    """A range of text offsets.

    ``base_offset`` is where the selection started and ``extent_offset``
    where it ended; both equal for a collapsed cursor.  Negative offsets
    mark an invalid (absent) selection.
    """

    base_offset: int
    extent_offset: int

    @classmethod
    def collapsed(cls, offset: int) -> "TextSelection":
        """Return a cursor at *offset*."""
        return cls(offset, offset)

    @classmethod
    def invalid(cls) -> "TextSelection":
        return cls(-1, -1)

    @property
    def is_valid(self) -> bool:
        return self.base_offset >= 0 and self.extent_offset >= 0

    @property
    def is_collapsed(self) -> bool:
        return self.base_offset == self.extent_offset

    @property
    def start(self) -> int:
        return min(self.base_offset, self.extent_offset)

    @property
    def end(self) -> int:
        return max(self.base_offset, self.extent_offset)


@dataclass(frozen=True)
class TextEditingValue:
    """Snapshot of the editable text and its selection."""

    text: str = ""
    selection: TextSelection = field(default_factory=TextSelection.invalid)

    @classmethod
    def with_cursor_at_end(cls, text: str) -> "TextEditingValue":
        return cls(text, TextSelection.collapsed(len(text)))


TextListener = Callable[[], None]


class TextEditingBuffer:
    """Mutable, observable holder of a :class:`TextEditingValue`.

    Listeners are plain callables invoked with no arguments after the value
    changes.  Assigning a value equal to the current one does not notify.

    Args:
        value: Initial value.  Setting it here never notifies.
    """

    def __init__(self, value: Optional[TextEditingValue] = None):
        self._value = value or TextEditingValue()
        self._listeners: list[TextListener] = []
        self._disposed = False

    @property
    def value(self) -> TextEditingValue:
        return self._value

    @value.setter
    def value(self, value: TextEditingValue) -> None:
        if value == self._value:
            return
        self._value = value
        self._notify()

    @property
    def text(self) -> str:
        return self._value.text

    @property
    def selection(self) -> TextSelection:
        return self._value.selection

    @property
    def disposed(self) -> bool:
        return self._disposed

    def set_value(self, text: str, selection: Optional[TextSelection] = None) -> None:
        """Replace text and selection in a single notification.

        When *selection* is omitted the cursor is placed at the end of *text*.
        """
        if selection is None:
            selection = TextSelection.collapsed(len(text))
        self.value = TextEditingValue(text, selection)

    def subscribe(self, listener: TextListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: TextListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def dispose(self) -> None:
        """Drop every listener; the buffer must not be used afterwards."""
        self._listeners.clear()
        self._disposed = True

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
