from __future__ import annotations

import argparse
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console

from multitrigger.config import AutocompleteConfig
from multitrigger.core.exceptions import ConfigError
from multitrigger.core.tracer import Tracer


console = Console(stderr=True)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="multitrigger",
        description="Trigger-based autocomplete demo (@mentions, #tags, :emoji, /commands)",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Configuration file (default: $MULTITRIGGER_CONFIG or ~/.config/multitrigger/multitrigger.json).",
    )

    parser.add_argument(
        "--debounce",
        type=float,
        default=None,
        help="Debounce interval in seconds, overriding the configuration.",
    )

    parser.add_argument(
        "--trace",
        type=Path,
        default=None,
        help="Write autocomplete traces to this file.",
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    load_dotenv()
    args = parse_args(argv)

    try:
        config = AutocompleteConfig.load(args.config)
        if args.debounce is not None:
            config.debounce_interval = args.debounce
        config.validate()
    except ConfigError as exc:
        console.print(f"[red]ERR[/red] {exc}")
        return 2

    from multitrigger.ui.textual.app import MultiTriggerApp

    tracer = None
    trace_file = None
    if args.trace is not None:
        trace_file = args.trace.open("a", encoding="utf-8")
        tracer = Tracer(Console(file=trace_file, force_terminal=False), enabled=True)

    try:
        app = MultiTriggerApp(config, tracer=tracer)
        app.run()
    except ConfigError as exc:
        console.print(f"[red]ERR[/red] {exc}")
        return 2
    finally:
        if trace_file is not None:
            trace_file.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
