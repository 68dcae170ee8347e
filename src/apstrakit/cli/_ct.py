"""apstrakit ct compile — compile a connectivity template document."""

from __future__ import annotations

import json
import sys

from rich.console import Console
from rich.table import Table


def cmd_ct_compile(path: str, as_json: bool, console: Console, err_console: Console) -> None:
    from apstrakit.core.constants import ExitCode
    from apstrakit.core.exceptions import BuildError, CtParseError, IdentityError
    from apstrakit.ct.parser import load_ct_policy

    try:
        policy = load_ct_policy(path)
    except CtParseError as exc:
        err_console.print(f"[red]{exc}[/red]")
        sys.exit(ExitCode.PARSE_ERROR)

    try:
        records = policy.compile()
    except (BuildError, IdentityError) as exc:
        err_console.print(f"[red]Cannot compile {path}: {exc}[/red]")
        sys.exit(ExitCode.ERROR)

    if as_json:
        print(json.dumps({"policies": [r.to_wire() for r in records]}, indent=2))
        return

    table = Table(title=f"Connectivity template: {policy.label}")
    table.add_column("Role", style="cyan")
    table.add_column("Type")
    table.add_column("Label")
    table.add_column("ID", style="dim")
    for role, record in zip(("main", "pipeline", "batch"), records):
        table.add_row(role, record.policy_type_name, record.label, record.id)
    console.print(table)
