from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Iterable

from .catalog import Catalog, CustomerDirectory
from .config import load_config
from .dispatcher import KeyDispatcher
from .invoice import MemoryInvoiceSink
from .notifications import NotificationCenter
from .observability import configure_logging
from .session import PROFILES, CheckoutSession

TYPE_PREFIX = "type:"


def _read_json_list(path: str | None) -> list[dict[str, Any]]:
    if not path:
        return []
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise ValueError(f"{path}: expected a JSON list")
    return payload


def replay(dispatcher: KeyDispatcher, lines: Iterable[str]) -> list[dict[str, Any]]:
    """Run a key script; one key name or ``type:<text>`` per line."""
    steps: list[dict[str, Any]] = []
    for raw in lines:
        line = raw.rstrip("\n")
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        if line.startswith(TYPE_PREFIX):
            result = dispatcher.type_text(line[len(TYPE_PREFIX):])
        else:
            result = dispatcher.dispatch(line.strip())
        steps.append(
            {
                "input": line,
                "handled": result.handled,
                "command": result.command.value if result.command else None,
                "error": result.error.code if result.error else None,
            }
        )
    return steps


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Replay a checkout key script against a catalog.")
    parser.add_argument("script", help="key script file, '-' for stdin")
    parser.add_argument("--catalog", required=True, help="JSON list of catalog entries")
    parser.add_argument("--customers", help="JSON list of customers")
    parser.add_argument("--profile", choices=sorted(PROFILES), default="rapid")
    parser.add_argument("--env-file", default=None)
    parser.add_argument("--output", help="write the result JSON here instead of stdout")
    args = parser.parse_args(argv)

    configure_logging()

    config = load_config(args.env_file)
    sink = MemoryInvoiceSink()
    notifications = NotificationCenter()
    session = CheckoutSession(
        PROFILES[args.profile],
        Catalog(_read_json_list(args.catalog)),
        CustomerDirectory(_read_json_list(args.customers)),
        config=config,
        sink=sink,
        notifications=notifications,
    )
    dispatcher = KeyDispatcher(session)

    if args.script == "-":
        steps = replay(dispatcher, sys.stdin)
    else:
        with open(args.script, encoding="utf-8") as fp:
            steps = replay(dispatcher, fp)

    payload = {
        "steps": steps,
        "state": session.render(),
        "effects": [str(getattr(effect, "value", effect)) for effect in session.drain_effects()],
        "notifications": notifications.render(),
        "invoices": [invoice.model_dump(mode="json") for invoice in sink.invoices],
    }
    text = json.dumps(payload, indent=2, sort_keys=True, default=str)
    if args.output:
        Path(args.output).write_text(text + "\n", encoding="utf-8")
    else:
        print(text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
