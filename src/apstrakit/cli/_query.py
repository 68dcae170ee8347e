"""apstrakit query render — render a path query document."""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING

from rich.console import Console

if TYPE_CHECKING:
    from apstrakit.core.config import QueryConfig


def cmd_query_render(
    path: str,
    as_json: bool,
    config: QueryConfig,
    console: Console,
    err_console: Console,
) -> None:
    from apstrakit.core.constants import ExitCode
    from apstrakit.core.exceptions import QueryError
    from apstrakit.query.document import load_path_query

    try:
        query = load_path_query(path)
    except QueryError as exc:
        err_console.print(f"[red]{exc}[/red]")
        sys.exit(ExitCode.PARSE_ERROR)

    if not as_json:
        console.print(query.render(), markup=False, highlight=False, soft_wrap=True)
        return

    query.apply_config(config)
    data = {
        "blueprint_id": query.blueprint_id,
        "blueprint_type": query.blueprint_type.value,
        "path": query.url_path(),
        "query": query.render(),
    }
    print(json.dumps(data, indent=2))
