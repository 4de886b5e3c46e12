"""init command — write .prthread.yml and the GitHub Actions workflow."""

from __future__ import annotations

from pathlib import Path

import click
import yaml
from rich.console import Console

console = Console()

_WORKFLOW_TEMPLATE = """\
name: PR Slack Thread

on:
  pull_request:
    types: [opened]
  issue_comment:
    types: [created]
  pull_request_review:
    types: [submitted]
  pull_request_review_comment:
    types: [created]

jobs:
  notify:
    runs-on: ubuntu-latest
    permissions:
      contents: read
      pull-requests: write

    steps:
      - uses: actions/checkout@v4

      - name: Set up Python
        uses: actions/setup-python@v5
        with:
          python-version: "3.12"

      - name: Install prthread
        run: pip install "prthread=={version}"

      - name: Notify Slack
        env:
          GITHUB_TOKEN: ${{{{ secrets.GITHUB_TOKEN }}}}
          SLACK_BOT_TOKEN: ${{{{ secrets.SLACK_BOT_TOKEN }}}}
          PRTHREAD_USER_MAPPINGS: ${{{{ secrets.PRTHREAD_USER_MAPPINGS }}}}
        run: prthread notify --channel {channel}
"""


@click.command("init")
@click.option("--channel", default=None, help="Slack channel ID to post to.")
@click.pass_context
def init_cmd(ctx, channel: str | None):
    """Set up prthread for a repository.

    Creates .prthread.yml and optionally a GitHub Actions workflow that
    runs `prthread notify` on PR, comment and review events.
    """
    config_path = Path((ctx.obj or {}).get("config_path", ".prthread.yml"))
    console.print("\n[bold cyan]prthread init[/bold cyan] — repository setup\n")

    if channel is None:
        channel = click.prompt("Slack channel ID (e.g. C0123456789)")

    defaults = click.prompt(
        "Default reviewer e-mails, comma separated (blank for none)",
        default="",
        show_default=False,
    )
    auto_match = click.confirm("Match GitHub users to Slack by public e-mail?", default=True)
    store_type = click.prompt(
        "Thread pointer store",
        type=click.Choice(["body", "sqlite"]),
        default="body",
    )

    config: dict = {
        "slack_channel": channel,
        "default_reviewers": [e.strip() for e in defaults.split(",") if e.strip()],
        "auto_match_by_email": auto_match,
        "store": store_type,
    }
    _write_config(config_path, config)
    console.print(f"[green]Created {config_path}[/green]")

    if click.confirm("\nGenerate .github/workflows/prthread.yml for GitHub Actions?", default=True):
        _write_workflow(channel)
        console.print("[green]Created .github/workflows/prthread.yml[/green]")
        console.print(
            "\n[yellow]Remember to add [bold]SLACK_BOT_TOKEN[/bold] (and optionally "
            "[bold]PRTHREAD_USER_MAPPINGS[/bold]) to your repository secrets.[/yellow]"
        )

    console.print("\n[bold green]Setup complete![/bold green]")


def _write_config(path: Path, config: dict) -> None:
    """Write or update the config file, preserving any existing keys."""
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False, allow_unicode=True))


def _get_version() -> str:
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("prthread")
    except PackageNotFoundError:
        return "0.1.0"


def _write_workflow(channel: str) -> None:
    workflow_dir = Path(".github/workflows")
    workflow_dir.mkdir(parents=True, exist_ok=True)
    (workflow_dir / "prthread.yml").write_text(_WORKFLOW_TEMPLATE.format(channel=channel, version=_get_version()))
