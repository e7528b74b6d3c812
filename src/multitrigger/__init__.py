"""Detect trigger tokens (``@handle``, ``#tag``, ``:emoji:``) while text is
being edited and coordinate a single autocomplete session around them."""

from multitrigger.config import AutocompleteConfig, FocusLossPolicy, OptionsAlignment
from multitrigger.context.autocomplete import AutocompleteState, MultiTriggerAutocomplete
from multitrigger.context.debounce import Debouncer, ManualScheduler
from multitrigger.context.focus import FocusManager, FocusNode, KeyEvent, KeyEventResult, Keys
from multitrigger.context.text_buffer import TextEditingBuffer, TextEditingValue, TextSelection
from multitrigger.context.trigger import AutocompleteQuery, AutocompleteTrigger, match
from multitrigger.core.exceptions import (
    AutocompleteConfigurationError,
    ConfigError,
    MultiTriggerError,
)

__all__ = [
    "AutocompleteConfig",
    "AutocompleteConfigurationError",
    "AutocompleteQuery",
    "AutocompleteState",
    "AutocompleteTrigger",
    "ConfigError",
    "Debouncer",
    "FocusLossPolicy",
    "FocusManager",
    "FocusNode",
    "KeyEvent",
    "KeyEventResult",
    "Keys",
    "ManualScheduler",
    "MultiTriggerAutocomplete",
    "MultiTriggerError",
    "OptionsAlignment",
    "TextEditingBuffer",
    "TextEditingValue",
    "TextSelection",
    "match",
]
