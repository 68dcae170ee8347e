"""apstrakit ports normalize — parse and re-render a port set."""

from __future__ import annotations

import json
import sys

from rich.console import Console


def cmd_ports_normalize(spec: str, as_json: bool, console: Console, err_console: Console) -> None:
    from apstrakit.core.constants import ExitCode
    from apstrakit.core.exceptions import PortRangeParseError
    from apstrakit.policy.ports import parse_port_ranges, render_port_ranges

    try:
        ranges = parse_port_ranges(spec)
    except PortRangeParseError as exc:
        err_console.print(f"[red]{exc}[/red]")
        sys.exit(ExitCode.PARSE_ERROR)

    canonical = render_port_ranges(ranges)
    if as_json:
        data = {
            "input": spec,
            "canonical": canonical,
            "ranges": [{"first": r.first, "last": r.last} for r in ranges],
        }
        print(json.dumps(data, indent=2))
        return

    console.print(canonical, markup=False, highlight=False)
