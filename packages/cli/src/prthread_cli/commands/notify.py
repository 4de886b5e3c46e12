"""notify command — handle one GitHub webhook delivery."""

from __future__ import annotations

import click
from github import GithubException
from rich.console import Console
from slack_sdk.errors import SlackApiError

from prthread_core.errors import PRThreadError
from prthread_core.events import load_event
from prthread_core.gh.pull_request import GitHubCodeHost
from prthread_core.notifier import NotificationResult, Notifier
from prthread_core.slack.client import SlackChat

console = Console()


def _report(result: NotificationResult) -> None:
    if result.skipped and result.event == "pull_request":
        console.print(
            f"[yellow]PR #{result.pr_number} already has Slack thread {result.thread_ts}. Nothing to do.[/yellow]"
        )
        return

    if result.skipped:
        console.print(f"[yellow]PR #{result.pr_number} has no Slack thread yet. Nothing to do.[/yellow]")
        return

    if result.event == "pull_request":
        console.print(
            f"[green]✅ Notification sent for PR #{result.pr_number} "
            f"({len(result.reviewers)} reviewer(s) via {result.provenance}).[/green]"
        )
        return

    if result.head_updated:
        console.print(f"[cyan]Status: {result.previous_status} → {result.status}[/cyan]")
    if result.notified:
        console.print(f"[green]Thread reply sent to {', '.join(result.notified)}.[/green]")
    else:
        console.print("[dim]No thread reply needed.[/dim]")


@click.command("notify")
@click.option("--repo", envvar="GITHUB_REPOSITORY", required=True, help="GitHub repository in owner/name format.")
@click.option(
    "--event-name",
    envvar="GITHUB_EVENT_NAME",
    required=True,
    help="Webhook event name (pull_request, issue_comment, pull_request_review, pull_request_review_comment).",
)
@click.option(
    "--event-path",
    envvar="GITHUB_EVENT_PATH",
    required=True,
    help="Path to the webhook payload JSON.",
)
@click.option("--channel", envvar="SLACK_CHANNEL", default=None, help="Slack channel ID. Overrides config file.")
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print Slack payloads without posting or saving the thread pointer.",
)
@click.pass_context
def notify_cmd(ctx, repo: str, event_name: str, event_path: str, channel: str | None, shadow: bool):
    """Post or update the Slack thread for a pull request event.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub token (or use gh CLI)
      SLACK_BOT_TOKEN      Slack bot token (not needed with --shadow)
    """
    from prthread_cli.auth import resolve_github_token, resolve_slack_token
    from prthread_cli.cli import _build_store
    from prthread_cli.shadow import ShadowChat, ShadowStore

    config = ctx.obj["config"]
    channel = channel or config.get("slack_channel")
    if not channel:
        raise click.UsageError("No Slack channel. Pass --channel, set SLACK_CHANNEL, or add slack_channel to config.")

    github_token = resolve_github_token()
    if not github_token:
        raise click.UsageError("No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.")
    slack_token = resolve_slack_token()
    if not slack_token and not shadow:
        raise click.UsageError("SLACK_BOT_TOKEN environment variable is not set.")

    store = None
    try:
        event = load_event(event_name, event_path)

        code_host = GitHubCodeHost.connect(repo, github_token)
        chat = SlackChat.from_token(slack_token) if slack_token else None
        store = _build_store(config, code_host, repo)
        if shadow:
            chat = ShadowChat(chat)
            store = ShadowStore(store)

        result = Notifier(code_host, chat, store, config, channel).handle(event)
    except (PRThreadError, GithubException, SlackApiError) as e:
        raise click.ClickException(f"Action failed: {e}") from e
    finally:
        if store is not None:
            store.close()

    _report(result)
