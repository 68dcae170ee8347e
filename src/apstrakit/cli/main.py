"""
apstrakit CLI entry point.

Commands:
  apstrakit ports normalize <spec>       — parse and re-render a port set
  apstrakit rule render <file.yaml>      — show the wire form of a policy rule
  apstrakit ct compile <file.yaml>       — compile a connectivity template policy
  apstrakit query render <file.yaml>     — render a path query document
  apstrakit config init                  — write a default config file
  apstrakit config show                  — show the effective configuration
"""

from __future__ import annotations

import sys

import click
from rich.console import Console

from apstrakit import __version__

console = Console()
err_console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "--version", "-V", message="apstrakit %(version)s")
@click.option("--log-level", default="", help="Override the configured log level")
@click.pass_context
def cli(ctx: click.Context, log_level: str) -> None:
    """apstrakit — connectivity templates, policy rules and graph queries for Apstra."""
    from apstrakit.core.config import load_config_or_default
    from apstrakit.core.constants import ExitCode
    from apstrakit.core.exceptions import ConfigError
    from apstrakit.core.logs import configure_logging

    try:
        cfg = load_config_or_default()
    except ConfigError as exc:
        err_console.print(f"[red]{exc}[/red]")
        sys.exit(ExitCode.CONFIG_ERROR)

    logging_cfg = cfg.logging
    if log_level:
        try:
            logging_cfg = logging_cfg.model_validate({**logging_cfg.model_dump(), "level": log_level})
        except ValueError as exc:
            err_console.print(f"[red]Invalid --log-level: {exc}[/red]")
            sys.exit(ExitCode.CONFIG_ERROR)
    configure_logging(logging_cfg)

    ctx.obj = cfg


# ---------------------------------------------------------------------------
# ports
# ---------------------------------------------------------------------------


@cli.group()
def ports() -> None:
    """Port range codec."""


@ports.command("normalize")
@click.argument("spec")
@click.option("--json", "as_json", is_flag=True, default=False)
def ports_normalize(spec: str, as_json: bool) -> None:
    """Parse SPEC (e.g. '443,8000-8080' or 'any') and print its canonical form."""
    from apstrakit.cli._ports import cmd_ports_normalize

    cmd_ports_normalize(spec=spec, as_json=as_json, console=console, err_console=err_console)


# ---------------------------------------------------------------------------
# rule
# ---------------------------------------------------------------------------


@cli.group()
def rule() -> None:
    """Security policy rules."""


@rule.command("render")
@click.argument("path", type=click.Path(dir_okay=False))
def rule_render(path: str) -> None:
    """Validate a rule document and print the JSON sent to the API."""
    from apstrakit.cli._rule import cmd_rule_render

    cmd_rule_render(path=path, console=console, err_console=err_console)


# ---------------------------------------------------------------------------
# ct
# ---------------------------------------------------------------------------


@cli.group()
def ct() -> None:
    """Connectivity templates."""


@ct.command("compile")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the import body")
def ct_compile(path: str, as_json: bool) -> None:
    """Compile a connectivity template document into its policy records."""
    from apstrakit.cli._ct import cmd_ct_compile

    cmd_ct_compile(path=path, as_json=as_json, console=console, err_console=err_console)


# ---------------------------------------------------------------------------
# query
# ---------------------------------------------------------------------------


@cli.group()
def query() -> None:
    """Graph queries."""


@query.command("render")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option(
    "--json", "as_json", is_flag=True, default=False, help="Print the request against the configured blueprint"
)
@click.pass_obj
def query_render(cfg, path: str, as_json: bool) -> None:
    """Render a path query document in the query engine language."""
    from apstrakit.cli._query import cmd_query_render

    cmd_query_render(
        path=path, as_json=as_json, config=cfg.query, console=console, err_console=err_console
    )


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


@cli.group()
def config() -> None:
    """Configuration management."""


@config.command("init")
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing config file")
@click.option("--blueprint-id", default="", help="Default blueprint id for queries")
def config_init(force: bool, blueprint_id: str) -> None:
    """Write a config file with default settings."""
    from apstrakit.cli._config_cmd import cmd_config_init

    cmd_config_init(force=force, blueprint_id=blueprint_id, console=console, err_console=err_console)


@config.command("show")
@click.option("--json", "as_json", is_flag=True, default=False)
@click.pass_obj
def config_show(cfg: object, as_json: bool) -> None:
    """Show the effective configuration (file + environment)."""
    from apstrakit.cli._config_cmd import cmd_config_show

    cmd_config_show(config=cfg, as_json=as_json, console=console)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
