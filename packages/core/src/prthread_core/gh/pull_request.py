from __future__ import annotations

import logging

from github import Github, GithubException

logger = logging.getLogger(__name__)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


class GitHubCodeHost:
    """CodeHost backed by PyGithub, bound to a single repository.

    Lookups (user e-mail, changed files, file content) never raise: a
    GithubException is logged and reported as a miss. Reads and writes of the
    pull request itself propagate, because the thread pointer lives there.
    """

    def __init__(self, repo, gh: Github):
        self._repo = repo
        self._gh = gh

    @classmethod
    def connect(cls, repo_name: str, token: str) -> GitHubCodeHost:
        gh = Github(token)
        return cls(gh.get_repo(repo_name), gh=gh)

    @property
    def full_name(self) -> str:
        return self._repo.full_name

    def get_user_email(self, handle: str) -> str | None:
        try:
            return self._gh.get_user(handle).email
        except GithubException as e:
            logger.debug("Failed to get GitHub user email for %s: %s", handle, e)
            return None

    def get_pull_request(self, number: int):
        return get_pull(self._repo, number)

    def get_pull_request_body(self, number: int) -> str:
        return get_pull(self._repo, number).body or ""

    def update_pull_request_body(self, number: int, body: str) -> None:
        get_pull(self._repo, number).edit(body=body)

    def list_changed_files(self, number: int) -> list[str]:
        try:
            return [f.filename for f in get_pull(self._repo, number).get_files()]
        except GithubException as e:
            logger.warning("Failed to get changed files for PR #%d: %s", number, e)
            return []

    def get_file_content(self, path: str) -> str | None:
        try:
            contents = self._repo.get_contents(path)
        except GithubException:
            return None
        # get_contents returns a list when path is a directory.
        if isinstance(contents, list) or not contents.content:
            return None
        return contents.decoded_content.decode("utf-8", errors="replace")
