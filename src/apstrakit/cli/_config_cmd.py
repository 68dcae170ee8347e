"""apstrakit config init / show."""

from __future__ import annotations

import json
import sys
from typing import Any

from rich.console import Console


def cmd_config_init(force: bool, blueprint_id: str, console: Console, err_console: Console) -> None:
    from apstrakit.core.config import ApstraKitConfig, _config_file_path, save_config
    from apstrakit.core.constants import ExitCode
    from apstrakit.core.exceptions import ConfigError

    cfg_path = _config_file_path()
    if cfg_path.exists() and not force:
        err_console.print(f"[yellow]Config already exists:[/yellow] {cfg_path}")
        err_console.print("Use [cyan]--force[/cyan] to overwrite.")
        sys.exit(ExitCode.CONFIG_ERROR)

    data: dict[str, Any] = ApstraKitConfig().model_dump()
    if blueprint_id:
        data["query"]["blueprint_id"] = blueprint_id

    try:
        written = save_config(data, cfg_path)
    except ConfigError as exc:
        err_console.print(f"[red]{exc}[/red]")
        sys.exit(ExitCode.CONFIG_ERROR)

    console.print(f"[green]Config written:[/green] {written}")


def cmd_config_show(config: Any, as_json: bool, console: Console) -> None:
    data = config.model_dump()
    if as_json:
        print(json.dumps(data, indent=2))
        return

    source = config.config_path or "defaults (no config file)"
    console.print(f"[bold]apstrakit configuration[/bold]  [dim]{source}[/dim]\n")
    for section, values in data.items():
        console.print(f"[cyan]\\[{section}][/cyan]")
        for key, value in values.items():
            console.print(f"  {key:<24} {value!r}")
        console.print()
