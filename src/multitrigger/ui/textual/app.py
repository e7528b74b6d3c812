"""Demo Textual application showing trigger-based autocomplete.

A transcript area collects submitted messages; the prompt below it offers
``@`` mentions, ``#`` tags, ``:`` emoji and ``/`` commands.

Keyboard shortcuts:
    Down    Move into the suggestions
    Escape  Hide the suggestions
    Ctrl+L  Clear the prompt
    Ctrl+Q  Quit
"""

from __future__ import annotations

from typing import List, Optional

from textual.app import App, ComposeResult
from textual.containers import Vertical, VerticalScroll
from textual.widgets import Footer, Header, Static

from multitrigger.config import AutocompleteConfig, TriggerConfig
from multitrigger.context.trigger import AutocompleteTrigger
from multitrigger.core.exceptions import ConfigError
from multitrigger.core.tracer import Tracer
from multitrigger.ui.textual.completion_provider import PROVIDERS
from multitrigger.ui.textual.suggestion_list import provider_renderer
from multitrigger.ui.textual.trigger_input import TriggerInput


DEFAULT_TRIGGERS = [
    TriggerConfig(trigger="/", provider="slash", only_at_start=True),
    TriggerConfig(trigger="@", provider="mention"),
    TriggerConfig(trigger="#", provider="tag"),
    TriggerConfig(trigger=":", provider="emoji", minimum_query_length=1),
]


def build_triggers(configs: List[TriggerConfig]) -> List[AutocompleteTrigger]:
    """Turn trigger settings into triggers rendered by the named providers.

    Raises:
        ConfigError: A trigger names an unknown provider.
    """
    triggers = []
    for cfg in configs:
        provider_cls = PROVIDERS.get(cfg.provider)
        if provider_cls is None:
            raise ConfigError(
                f"Unknown provider {cfg.provider!r} for trigger {cfg.trigger!r}; "
                f"expected one of {', '.join(sorted(PROVIDERS))}"
            )
        triggers.append(
            AutocompleteTrigger(
                trigger_character=cfg.trigger,
                options_renderer=provider_renderer(provider_cls()),
                only_at_start=cfg.only_at_start,
                only_after_whitespace=cfg.only_after_whitespace,
                minimum_query_length=cfg.minimum_query_length,
            )
        )
    return triggers


class MultiTriggerApp(App):
    """Single-screen demo around a :class:`TriggerInput`."""

    CSS = """
    #transcript {
        height: 1fr;
        border: round $primary;
        padding: 0 1;
    }
    """

    BINDINGS = [
        ("ctrl+l", "clear_text", "Clear text"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, config: AutocompleteConfig, tracer: Optional[Tracer] = None) -> None:
        super().__init__()
        self.config = config
        self.tracer = tracer
        self.triggers = build_triggers(config.triggers or DEFAULT_TRIGGERS)
        self.messages: List[str] = []

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical():
            yield VerticalScroll(id="transcript")
            yield TriggerInput(
                triggers=self.triggers,
                config=self.config,
                tracer=self.tracer,
                id="prompt",
            )
        yield Footer()

    def on_trigger_input_submitted(self, event: TriggerInput.Submitted) -> None:
        self.messages.append(event.value)
        transcript = self.query_one("#transcript", VerticalScroll)
        transcript.mount(Static(event.value))
        transcript.scroll_end(animate=False)

    def action_clear_text(self) -> None:
        self.query_one(TriggerInput).buffer.set_value("")
