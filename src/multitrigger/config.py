"""Autocomplete configuration persisted as JSON in the user config directory.

The configuration file lives at ``~/.config/multitrigger/multitrigger.json``
by default (``MULTITRIGGER_CONFIG`` overrides it) and stores the debounce
interval, how the options surface is placed relative to the input, the
focus-loss policy and the list of triggers the demo application registers.
"""

from __future__ import annotations

import dataclasses
import json
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from multitrigger.core.exceptions import ConfigError


CONFIG_ENV_VAR = "MULTITRIGGER_CONFIG"


def default_config_path() -> Path:
    """Return the conventional path to the configuration file.

    ``MULTITRIGGER_CONFIG`` wins over the per-user default.
    """
    env = os.getenv(CONFIG_ENV_VAR)
    if env:
        return Path(env).expanduser()
    return Path.home() / ".config" / "multitrigger" / "multitrigger.json"


class Alignment(Enum):
    TOP_LEFT = "topLeft"
    TOP_CENTER = "topCenter"
    TOP_RIGHT = "topRight"
    BOTTOM_LEFT = "bottomLeft"
    BOTTOM_CENTER = "bottomCenter"
    BOTTOM_RIGHT = "bottomRight"

    @property
    def horizontal(self) -> str:
        """``"left"``, ``"center"`` or ``"right"``."""
        return self.value.replace("top", "").replace("bottom", "").lower()


@dataclass(frozen=True)
class OptionsAnchor:
    """Which point of the options surface (*follower*) sticks to which point
    of the input (*target*)."""

    follower: Alignment
    target: Alignment
    width_factor: Optional[float] = 1.0

    @property
    def above(self) -> bool:
        return self.target in (Alignment.TOP_LEFT, Alignment.TOP_CENTER, Alignment.TOP_RIGHT)


class OptionsAlignment(Enum):
    """Placement of the options surface around the input."""

    TOP = "top"
    BOTTOM = "bottom"
    TOP_START = "topStart"
    TOP_END = "topEnd"
    BOTTOM_START = "bottomStart"
    BOTTOM_END = "bottomEnd"

    def anchor(self, width_factor: Optional[float] = 1.0) -> OptionsAnchor:
        follower, target = _ANCHORS[self]
        return OptionsAnchor(follower=follower, target=target, width_factor=width_factor)


_ANCHORS = {
    OptionsAlignment.TOP: (Alignment.BOTTOM_CENTER, Alignment.TOP_CENTER),
    OptionsAlignment.BOTTOM: (Alignment.TOP_CENTER, Alignment.BOTTOM_CENTER),
    OptionsAlignment.TOP_START: (Alignment.BOTTOM_LEFT, Alignment.TOP_LEFT),
    OptionsAlignment.TOP_END: (Alignment.BOTTOM_RIGHT, Alignment.TOP_RIGHT),
    OptionsAlignment.BOTTOM_START: (Alignment.TOP_LEFT, Alignment.BOTTOM_LEFT),
    OptionsAlignment.BOTTOM_END: (Alignment.TOP_RIGHT, Alignment.BOTTOM_RIGHT),
}


class FocusLossPolicy(Enum):
    """What happens to an active query when the input loses focus.

    ``CLOSE`` drops the query; ``HIDE`` keeps it but hides the options so
    they come back immediately on refocus.
    """

    CLOSE = "close"
    HIDE = "hide"


@dataclass
class TriggerConfig:
    """A trigger registered by the demo application.

    Attributes:
        trigger: Trigger string, e.g. ``"@"``.
        provider: Name of the completion provider rendering its options
            (``mention``, ``tag``, ``emoji``, ``slash``).
        only_at_start: Recognise only at the start of the text.
        only_after_whitespace: Recognise only after whitespace.
        minimum_query_length: Characters needed before options appear.
    """

    trigger: str
    provider: str
    only_at_start: bool = False
    only_after_whitespace: bool = True
    minimum_query_length: int = 0


@dataclass
class AutocompleteConfig:
    """Autocomplete settings backed by a JSON file.

    Attributes:
        config_path: Absolute path to the JSON configuration file.
        debounce_interval: Seconds of quiet typing before triggers are
            evaluated.
        options_alignment: Placement of the options surface.
        options_width_factor: Options width as a multiple of the input width,
            or ``None`` to size to content.
        focus_loss_policy: See :class:`FocusLossPolicy`.
        triggers: Triggers registered by the demo application.
    """

    config_path: Path
    debounce_interval: float = 0.3
    options_alignment: OptionsAlignment = OptionsAlignment.BOTTOM
    options_width_factor: Optional[float] = 1.0
    focus_loss_policy: FocusLossPolicy = FocusLossPolicy.CLOSE
    triggers: List[TriggerConfig] = field(default_factory=list)

    def validate(self) -> None:
        """Raise :class:`ConfigError` when a value is out of range."""
        if self.debounce_interval < 0:
            raise ConfigError(f"debounce_interval must be >= 0, got {self.debounce_interval}")
        if self.options_width_factor is not None and self.options_width_factor <= 0:
            raise ConfigError(f"options_width_factor must be > 0, got {self.options_width_factor}")
        for trigger in self.triggers:
            if not trigger.trigger:
                raise ConfigError("trigger must not be empty")
            if trigger.minimum_query_length < 0:
                raise ConfigError(
                    f"minimum_query_length must be >= 0 for {trigger.trigger!r}"
                )

    @property
    def options_anchor(self) -> OptionsAnchor:
        return self.options_alignment.anchor(self.options_width_factor)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "AutocompleteConfig":
        """Load the configuration from a JSON file.

        If the file does not exist an ``AutocompleteConfig`` with default
        values is returned.

        Args:
            path: Explicit config file path.  Falls back to
                :func:`default_config_path` when ``None``.

        Raises:
            ConfigError: The file is not valid JSON or holds invalid values.
        """
        path = path or default_config_path()

        if not path.exists():
            return cls(config_path=path)

        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc

        try:
            config = cls(
                config_path=path,
                debounce_interval=float(data.get("debounce_interval", 0.3)),
                options_alignment=OptionsAlignment(data.get("options_alignment", "bottom")),
                options_width_factor=data.get("options_width_factor", 1.0),
                focus_loss_policy=FocusLossPolicy(data.get("focus_loss_policy", "close")),
                triggers=[TriggerConfig(**t) for t in data.get("triggers", [])],
            )
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc

        config.validate()
        return config

    def save(self) -> None:
        """Persist the current configuration to disk as pretty-printed JSON.

        Parent directories are created automatically when they do not exist.
        """
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        payload = {
            "debounce_interval": self.debounce_interval,
            "options_alignment": self.options_alignment.value,
            "options_width_factor": self.options_width_factor,
            "focus_loss_policy": self.focus_loss_policy.value,
            "triggers": [dataclasses.asdict(t) for t in self.triggers],
        }

        self.config_path.write_text(json.dumps(payload, indent=2))
