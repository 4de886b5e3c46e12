"""whois command — check how GitHub handles map to Slack users."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

console = Console()


@click.command("whois")
@click.argument("handles", nargs=-1, required=True)
@click.option("--repo", envvar="GITHUB_REPOSITORY", required=True, help="GitHub repository (owner/name).")
@click.pass_context
def whois_cmd(ctx, handles: tuple[str, ...], repo: str):
    """Resolve GitHub HANDLES to Slack users using the configured mappings.

    Useful for checking email_mappings and auto_match_by_email before a
    mention silently falls back to plain text.
    """
    from prthread_cli.auth import resolve_github_token, resolve_slack_token
    from prthread_core.gh.pull_request import GitHubCodeHost
    from prthread_core.identity import IdentityMapper
    from prthread_core.slack.client import SlackChat

    config = ctx.obj["config"]

    github_token = resolve_github_token()
    if not github_token:
        raise click.UsageError("No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.")
    slack_token = resolve_slack_token()
    if not slack_token:
        raise click.UsageError("SLACK_BOT_TOKEN environment variable is not set.")

    mapper = IdentityMapper(
        SlackChat.from_token(slack_token),
        GitHubCodeHost.connect(repo, github_token),
        config,
    )
    mappings = config.get("email_mappings") or {}

    table = Table(title="GitHub → Slack", show_header=True, header_style="bold cyan")
    table.add_column("Handle", style="bold")
    table.add_column("Mapped e-mail")
    table.add_column("Slack user")

    for handle in (h.lstrip("@") for h in handles):
        slack_id = mapper.resolve(handle)
        table.add_row(
            f"@{handle}",
            mappings.get(handle, "[dim]—[/dim]"),
            f"[green]{slack_id}[/green]" if slack_id else "[red]not found[/red]",
        )

    console.print(table)
