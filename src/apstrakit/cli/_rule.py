"""apstrakit rule render — validate a rule document and show its wire form."""

from __future__ import annotations

import json
import sys

from rich.console import Console


def cmd_rule_render(path: str, console: Console, err_console: Console) -> None:
    from apstrakit.core.constants import ExitCode
    from apstrakit.core.exceptions import PolicyParseError
    from apstrakit.policy.parser import load_rule

    try:
        rule = load_rule(path)
    except PolicyParseError as exc:
        err_console.print(f"[red]{exc}[/red]")
        sys.exit(ExitCode.PARSE_ERROR)

    print(json.dumps(rule.raw().to_wire(), indent=2))
