"""Tests for the CLI entry point."""

import json
import subprocess
from unittest.mock import MagicMock, patch

import yaml
from click.testing import CliRunner
from github import GithubException

from prthread_cli.cli import _build_store, main
from prthread_cli.shadow import ShadowChat, ShadowStore
from prthread_core.errors import ChatAPIError
from prthread_core.notifier import NotificationResult
from prthread_store.body import PRBodyStore
from prthread_store.models import ThreadPointer
from prthread_store.sqlite import SQLiteStore


def _make_config(**overrides):
    config = {
        "email_mappings": {},
        "default_reviewers": [],
        "auto_match_by_email": True,
        "codeowners_precedence": "last",
        "store": "body",
        "slack_channel": "C1",
        "github_token": "tok",
        "slack_bot_token": "xoxb",
    }
    config.update(overrides)
    return config


def _patch_common(mocker, config=None, github_token="tok", slack_token="xoxb"):
    """Patch config loading, token resolution and the external clients."""
    cfg = config or _make_config()
    mocker.patch("prthread_core.config.load_config", return_value=cfg)
    mocker.patch("prthread_cli.auth.resolve_github_token", return_value=github_token)
    mocker.patch("prthread_cli.auth.resolve_slack_token", return_value=slack_token)
    code_host = MagicMock()
    mocker.patch("prthread_cli.commands.notify.GitHubCodeHost.connect", return_value=code_host)
    chat = MagicMock()
    mocker.patch("prthread_cli.commands.notify.SlackChat.from_token", return_value=chat)
    store = MagicMock()
    mocker.patch("prthread_cli.cli._build_store", return_value=store)
    return cfg, code_host, chat, store


def _event_file(tmp_path, payload=None):
    path = tmp_path / "event.json"
    payload = payload or {
        "issue": {"number": 7, "pull_request": {"url": "x"}},
        "comment": {"user": {"login": "bob"}, "body": "@carol", "html_url": "c"},
    }
    path.write_text(json.dumps(payload))
    return str(path)


def _notify_args(event_path, event_name="issue_comment"):
    return ["notify", "--repo", "o/r", "--event-name", event_name, "--event-path", event_path]


# ---------------------------------------------------------------------------
# notify command
# ---------------------------------------------------------------------------


class TestNotifyValidation:
    def test_missing_github_token(self, mocker, tmp_path):
        _patch_common(mocker, github_token=None)
        result = CliRunner().invoke(main, _notify_args(_event_file(tmp_path)))
        assert result.exit_code != 0
        assert "GITHUB_TOKEN" in result.output

    def test_missing_slack_token(self, mocker, tmp_path):
        _patch_common(mocker, slack_token=None)
        result = CliRunner().invoke(main, _notify_args(_event_file(tmp_path)))
        assert result.exit_code != 0
        assert "SLACK_BOT_TOKEN" in result.output

    def test_missing_channel(self, mocker, tmp_path, monkeypatch):
        monkeypatch.delenv("SLACK_CHANNEL", raising=False)
        _patch_common(mocker, config=_make_config(slack_channel=None))
        result = CliRunner().invoke(main, _notify_args(_event_file(tmp_path)))
        assert result.exit_code != 0
        assert "channel" in result.output.lower()

    def test_unsupported_event_fails_run(self, mocker, tmp_path):
        _patch_common(mocker)
        result = CliRunner().invoke(main, _notify_args(_event_file(tmp_path, {}), event_name="push"))
        assert result.exit_code != 0
        assert "Unsupported event type: push" in result.output


class TestNotifyRun:
    def test_runs_notifier_and_reports(self, mocker, tmp_path):
        _, code_host, chat, store = _patch_common(mocker)
        mock_notifier = mocker.patch("prthread_cli.commands.notify.Notifier")
        mock_notifier.return_value.handle.return_value = NotificationResult(
            pr_number=7,
            event="issue_comment",
            previous_status="review-pending",
            status="in-review",
            head_updated=True,
            notified=["carol"],
        )

        result = CliRunner().invoke(main, _notify_args(_event_file(tmp_path)))

        assert result.exit_code == 0, result.output
        args = mock_notifier.call_args.args
        assert args[0] is code_host
        assert args[1] is chat
        assert args[2] is store
        assert args[4] == "C1"
        assert "review-pending → in-review" in result.output
        assert "carol" in result.output
        store.close.assert_called_once()

    def test_channel_option_overrides_config(self, mocker, tmp_path):
        _patch_common(mocker)
        mock_notifier = mocker.patch("prthread_cli.commands.notify.Notifier")
        mock_notifier.return_value.handle.return_value = NotificationResult(pr_number=7, event="x", skipped=True)

        CliRunner().invoke(main, _notify_args(_event_file(tmp_path)) + ["--channel", "C9"])

        assert mock_notifier.call_args.args[4] == "C9"

    def test_skipped_result_reported(self, mocker, tmp_path):
        _patch_common(mocker)
        mock_notifier = mocker.patch("prthread_cli.commands.notify.Notifier")
        mock_notifier.return_value.handle.return_value = NotificationResult(
            pr_number=7, event="issue_comment", skipped=True
        )

        result = CliRunner().invoke(main, _notify_args(_event_file(tmp_path)))

        assert result.exit_code == 0
        assert "no Slack thread" in result.output

    def test_critical_failure_is_single_error(self, mocker, tmp_path):
        _, _, _, store = _patch_common(mocker)
        mock_notifier = mocker.patch("prthread_cli.commands.notify.Notifier")
        mock_notifier.return_value.handle.side_effect = ChatAPIError("Slack chat_update failed: message_not_found")

        result = CliRunner().invoke(main, _notify_args(_event_file(tmp_path)))

        assert result.exit_code == 1
        assert "Action failed: Slack chat_update failed: message_not_found" in result.output
        store.close.assert_called_once()

    def test_github_failure_is_single_error(self, mocker, tmp_path):
        _patch_common(mocker)
        mocker.patch(
            "prthread_cli.commands.notify.GitHubCodeHost.connect",
            side_effect=GithubException(401, "Bad credentials"),
        )

        result = CliRunner().invoke(main, _notify_args(_event_file(tmp_path)))

        assert result.exit_code == 1
        assert "Action failed" in result.output

    def test_shadow_wraps_chat_and_store(self, mocker, tmp_path):
        _, _, chat, store = _patch_common(mocker, slack_token=None)
        mock_notifier = mocker.patch("prthread_cli.commands.notify.Notifier")
        mock_notifier.return_value.handle.return_value = NotificationResult(pr_number=7, event="x", skipped=True)

        result = CliRunner().invoke(main, _notify_args(_event_file(tmp_path)) + ["--shadow"])

        assert result.exit_code == 0, result.output
        args = mock_notifier.call_args.args
        assert isinstance(args[1], ShadowChat)
        assert isinstance(args[2], ShadowStore)

    def test_existing_thread_reported(self, mocker, tmp_path):
        _patch_common(mocker)
        mock_notifier = mocker.patch("prthread_cli.commands.notify.Notifier")
        mock_notifier.return_value.handle.return_value = NotificationResult(
            pr_number=7, event="pull_request", thread_ts="111.22", skipped=True
        )

        result = CliRunner().invoke(main, _notify_args(_event_file(tmp_path), event_name="pull_request"))

        assert result.exit_code == 0, result.output
        assert "already has Slack thread 111.22" in result.output


class TestNotifyErrors:
    def test_malformed_event_file_is_single_error(self, mocker, tmp_path):
        _, _, _, store = _patch_common(mocker)
        path = tmp_path / "event.json"
        path.write_text("{not json")

        result = CliRunner().invoke(main, _notify_args(str(path)))

        assert result.exit_code == 1
        assert "Action failed" in result.output
        assert "not valid JSON" in result.output
        assert "Traceback" not in result.output
        assert not isinstance(result.exception, ValueError)

    def test_synchronize_action_is_single_error(self, mocker, tmp_path):
        _patch_common(mocker)
        payload = {"action": "synchronize", "pull_request": {"number": 7}}

        result = CliRunner().invoke(main, _notify_args(_event_file(tmp_path, payload), event_name="pull_request"))

        assert result.exit_code == 1
        assert "Unsupported event type: pull_request.synchronize" in result.output

    def test_bad_codeowners_precedence_is_single_error(self, tmp_path, monkeypatch):
        monkeypatch.delenv("PRTHREAD_USER_MAPPINGS", raising=False)
        cfg = tmp_path / ".prthread.yml"
        cfg.write_text("codeowners_precedence: middle\n")

        result = CliRunner().invoke(
            main, ["--config", str(cfg)] + _notify_args(_event_file(tmp_path), event_name="issue_comment")
        )

        assert result.exit_code == 1
        assert "Unknown codeowners_precedence: 'middle'" in result.output


# ---------------------------------------------------------------------------
# shadow collaborators
# ---------------------------------------------------------------------------


class TestShadow:
    def test_shadow_chat_prints_instead_of_sending(self):
        delegate = MagicMock()
        delegate.lookup_by_email.return_value = "U1"
        chat = ShadowChat(delegate)

        assert chat.lookup_by_email("a@co.com") == "U1"
        assert chat.post_message("C1", {"text": "hello"})
        chat.update_message("C1", "1.1", {"text": "again"})

        delegate.post_message.assert_not_called()
        delegate.update_message.assert_not_called()

    def test_shadow_chat_without_delegate_resolves_nothing(self):
        assert ShadowChat().lookup_by_email("a@co.com") is None

    def test_shadow_store_reads_but_does_not_write(self):
        inner = MagicMock()
        inner.get_pointer.return_value = ThreadPointer("1.1", "in-review")
        store = ShadowStore(inner)

        assert store.get_pointer(7) == ThreadPointer("1.1", "in-review")
        store.set_pointer(7, ThreadPointer("1.1", "approved"))
        inner.set_pointer.assert_not_called()


# ---------------------------------------------------------------------------
# auth.py
# ---------------------------------------------------------------------------


class TestResolveGithubToken:
    def test_returns_env_var_when_set(self, monkeypatch):
        from prthread_cli.auth import resolve_github_token

        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        assert resolve_github_token() == "env-token"

    def test_falls_back_to_gh_cli(self, monkeypatch):
        from prthread_cli.auth import resolve_github_token

        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout="gh-token\n")
            result = resolve_github_token()
        assert result == "gh-token"

    def test_returns_none_when_gh_not_installed(self, monkeypatch):
        from prthread_cli.auth import resolve_github_token

        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with patch("subprocess.run", side_effect=FileNotFoundError):
            result = resolve_github_token()
        assert result is None

    def test_returns_none_when_gh_times_out(self, monkeypatch):
        from prthread_cli.auth import resolve_github_token

        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired(cmd="gh", timeout=5)):
            result = resolve_github_token()
        assert result is None


class TestResolveSlackToken:
    def test_env_var(self, monkeypatch):
        from prthread_cli.auth import resolve_slack_token

        monkeypatch.setenv("SLACK_BOT_TOKEN", "xoxb-1")
        assert resolve_slack_token() == "xoxb-1"

    def test_missing(self, monkeypatch):
        from prthread_cli.auth import resolve_slack_token

        monkeypatch.delenv("SLACK_BOT_TOKEN", raising=False)
        assert resolve_slack_token() is None


# ---------------------------------------------------------------------------
# _build_store
# ---------------------------------------------------------------------------


class TestBuildStore:
    def test_returns_body_store_by_default(self):
        assert isinstance(_build_store({}, MagicMock(), "o/r"), PRBodyStore)

    def test_unknown_store_falls_back_to_body(self):
        assert isinstance(_build_store({"store": "redis"}, MagicMock(), "o/r"), PRBodyStore)

    def test_returns_sqlite_store(self, tmp_path):
        store = _build_store({"store": "sqlite", "store_path": str(tmp_path / "t.db")}, MagicMock(), "o/r")
        assert isinstance(store, SQLiteStore)
        store.close()


# ---------------------------------------------------------------------------
# whois command
# ---------------------------------------------------------------------------


class TestWhoisCommand:
    def test_shows_resolution_table(self, mocker):
        mocker.patch("prthread_core.config.load_config", return_value=_make_config(email_mappings={"bob": "b@co.com"}))
        mocker.patch("prthread_cli.auth.resolve_github_token", return_value="tok")
        mocker.patch("prthread_cli.auth.resolve_slack_token", return_value="xoxb")
        mocker.patch("prthread_core.gh.pull_request.GitHubCodeHost.connect", return_value=MagicMock())
        mocker.patch("prthread_core.slack.client.SlackChat.from_token", return_value=MagicMock())
        mocker.patch(
            "prthread_core.identity.IdentityMapper.resolve",
            side_effect=lambda handle: {"bob": "U2"}.get(handle),
        )

        result = CliRunner().invoke(main, ["whois", "--repo", "o/r", "@bob", "ghost"])

        assert result.exit_code == 0, result.output
        assert "@bob" in result.output
        assert "U2" in result.output
        assert "b@co.com" in result.output
        assert "not found" in result.output

    def test_requires_slack_token(self, mocker):
        mocker.patch("prthread_core.config.load_config", return_value=_make_config())
        mocker.patch("prthread_cli.auth.resolve_github_token", return_value="tok")
        mocker.patch("prthread_cli.auth.resolve_slack_token", return_value=None)

        result = CliRunner().invoke(main, ["whois", "--repo", "o/r", "bob"])

        assert result.exit_code != 0
        assert "SLACK_BOT_TOKEN" in result.output


# ---------------------------------------------------------------------------
# init command
# ---------------------------------------------------------------------------


class TestInitCommand:
    def test_writes_config(self, mocker, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        mocker.patch("prthread_core.config.load_config", return_value=_make_config())

        result = CliRunner().invoke(
            main,
            ["init", "--channel", "C123"],
            input="bob@co.com, dave@co.com\ny\nbody\nN\n",
        )

        assert result.exit_code == 0, result.output
        config = yaml.safe_load((tmp_path / ".prthread.yml").read_text())
        assert config["slack_channel"] == "C123"
        assert config["default_reviewers"] == ["bob@co.com", "dave@co.com"]
        assert config["auto_match_by_email"] is True
        assert config["store"] == "body"
        assert not (tmp_path / ".github").exists()

    def test_preserves_existing_keys(self, mocker, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".prthread.yml").write_text("email_mappings:\n  bob: bob@co.com\n")
        mocker.patch("prthread_core.config.load_config", return_value=_make_config())

        CliRunner().invoke(main, ["init", "--channel", "C123"], input="\nn\nsqlite\nN\n")

        config = yaml.safe_load((tmp_path / ".prthread.yml").read_text())
        assert config["email_mappings"] == {"bob": "bob@co.com"}
        assert config["store"] == "sqlite"
        assert config["auto_match_by_email"] is False

    def test_writes_github_actions_workflow(self, mocker, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        mocker.patch("prthread_core.config.load_config", return_value=_make_config())

        CliRunner().invoke(main, ["init", "--channel", "C123"], input="\ny\nbody\nY\n")

        workflow = (tmp_path / ".github" / "workflows" / "prthread.yml").read_text()
        assert "prthread notify --channel C123" in workflow
        assert "pull_request_review_comment" in workflow
        assert "${{ secrets.SLACK_BOT_TOKEN }}" in workflow
