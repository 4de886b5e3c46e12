"""CLI entry point for prthread.

Commands:
  notify  — handle one GitHub webhook delivery (the GitHub Actions entry point)
  whois   — show how GitHub handles resolve to Slack users
  init    — write .prthread.yml and a GitHub Actions workflow
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from prthread_cli.commands.init import init_cmd
from prthread_cli.commands.notify import notify_cmd
from prthread_cli.commands.whois import whois_cmd

console = Console()


def _build_store(config: dict, code_host, repo: str):
    """Instantiate the configured pointer store.

    Store selection:
      store: body   → PRBodyStore (markers in the PR description, the default)
      store: sqlite → SQLiteStore (store_path or .prthread.db)
    """
    store_type = config.get("store", "body")

    if store_type == "sqlite":
        from prthread_store.sqlite import SQLiteStore

        return SQLiteStore(repo=repo, db_path=config.get("store_path") or ".prthread.db")

    if store_type != "body":
        console.print(f"[yellow]Unknown store {store_type!r}. Falling back to the PR body store.[/yellow]")

    from prthread_store.body import PRBodyStore

    return PRBodyStore(code_host)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("prthread"),
    prog_name="prthread",
)
@click.option(
    "--config",
    "config_path",
    default=".prthread.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRTHREAD_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Keep one Slack thread per GitHub pull request in sync with its review."""
    from prthread_core.config import load_config
    from prthread_core.errors import ConfigError

    _configure_logging(verbose)
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    ctx.obj["config_path"] = config_path


main.add_command(notify_cmd)
main.add_command(whois_cmd)
main.add_command(init_cmd)
