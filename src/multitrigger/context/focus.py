"""Minimal focus model: focus nodes, a focus manager and key events.

Hosts mirror their toolkit's focus into :class:`FocusNode` objects so the
autocomplete coordinator can react to focus changes and intercept keys
without depending on any UI library.  Nodes form a tree through ``parent``;
key events bubble from the focused node to the root until one handler
returns :attr:`KeyEventResult.HANDLED`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional


class KeyEventResult(Enum):
    HANDLED = "handled"
    IGNORED = "ignored"


class Keys:
    """Logical key names (they follow Textual's key naming)."""

    ESCAPE = "escape"
    DOWN = "down"
    ENTER = "enter"
    SPACE = "space"


@dataclass(frozen=True)
class KeyEvent:
    """A key press.

    Attributes:
        key: Logical key name, see :class:`Keys`.
        is_key_down: ``False`` for key-up/repeat notifications, which the
            autocomplete ignores.
    """

    key: str
    is_key_down: bool = True


KeyEventHandler = Callable[["FocusNode", KeyEvent], KeyEventResult]
FocusListener = Callable[[], None]


class FocusManager:
    """Tracks which :class:`FocusNode` holds primary focus.

    Listeners of every node whose ``has_focus`` changed are notified after the
    switch is complete, so a listener never observes an intermediate state
    where nothing is focused.
    """

    def __init__(self):
        self._primary: Optional[FocusNode] = None

    @property
    def primary_focus(self) -> Optional["FocusNode"]:
        return self._primary

    def focus(self, node: Optional["FocusNode"]) -> None:
        """Give primary focus to *node* (``None`` clears focus)."""
        if node is self._primary:
            return
        old_chain = self._primary.ancestors_and_self() if self._primary else []
        self._primary = node
        new_chain = node.ancestors_and_self() if node else []

        changed = [n for n in old_chain if n not in new_chain]
        changed += [n for n in new_chain if n not in old_chain]
        for changed_node in changed:
            changed_node._notify()

    def dispatch_key(self, event: KeyEvent) -> KeyEventResult:
        """Bubble *event* from the focused node up to the root."""
        node = self._primary
        while node is not None:
            if node.on_key_event is not None:
                result = node.on_key_event(node, event)
                if result is KeyEventResult.HANDLED:
                    return result
            node = node.parent
        return KeyEventResult.IGNORED


class FocusNode:
    """A focusable target.

    Args:
        manager: The :class:`FocusManager` shared by all nodes of a screen.
        debug_label: Name used in traces.
        parent: Enclosing node; it ``has_focus`` while any descendant does.
        on_key_event: Optional handler consulted by
            :meth:`FocusManager.dispatch_key`.
    """

    def __init__(
        self,
        manager: FocusManager,
        *,
        debug_label: str = "",
        parent: Optional["FocusNode"] = None,
        on_key_event: Optional[KeyEventHandler] = None,
    ):
        self.manager = manager
        self.debug_label = debug_label
        self.parent = parent
        self.on_key_event = on_key_event
        self._listeners: list[FocusListener] = []
        self._disposed = False

    def __repr__(self) -> str:
        return f"FocusNode({self.debug_label!r}, has_focus={self.has_focus})"

    @property
    def has_primary_focus(self) -> bool:
        return self.manager.primary_focus is self

    @property
    def has_focus(self) -> bool:
        node = self.manager.primary_focus
        while node is not None:
            if node is self:
                return True
            node = node.parent
        return False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def ancestors_and_self(self) -> list["FocusNode"]:
        chain = []
        node: Optional[FocusNode] = self
        while node is not None:
            chain.append(node)
            node = node.parent
        return chain

    def request_focus(self) -> None:
        if self._disposed:
            return
        self.manager.focus(self)

    def unfocus(self) -> None:
        """Drop focus if this node or one of its descendants holds it."""
        if self.has_focus:
            self.manager.focus(None)

    def subscribe(self, listener: FocusListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: FocusListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def dispose(self) -> None:
        self.unfocus()
        self._listeners.clear()
        self.on_key_event = None
        self._disposed = True

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
