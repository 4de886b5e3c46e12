import json
import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from prthread_core.codeowners import PRECEDENCE_FIRST, PRECEDENCE_LAST
from prthread_core.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict = {
    "email_mappings": {},  # GitHub handle -> e-mail used for the Slack lookup
    "default_reviewers": [],  # e-mails notified on every new PR
    "auto_match_by_email": True,
    "codeowners_precedence": "last",  # "last" = later CODEOWNERS lines win, "first" = earlier lines win
    "codeowners_paths": [".github/CODEOWNERS", "CODEOWNERS", "docs/CODEOWNERS"],
    "store": "body",  # "body" = markers in the PR description, "sqlite" = local database
    "store_path": ".prthread.db",
    "slack_channel": None,
}

USER_MAPPINGS_ENV = "PRTHREAD_USER_MAPPINGS"


def load_user_mappings() -> dict:
    """Read handle -> e-mail mappings from the PRTHREAD_USER_MAPPINGS secret.

    The value is a JSON object. Invalid JSON or a non-object value is logged
    and ignored.
    """
    raw = os.environ.get(USER_MAPPINGS_ENV)
    if not raw:
        return {}
    try:
        mappings = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse %s: %s", USER_MAPPINGS_ENV, e)
        return {}
    if not isinstance(mappings, dict):
        logger.warning("%s must be a JSON object, got %s", USER_MAPPINGS_ENV, type(mappings).__name__)
        return {}
    logger.info("Using user mappings from %s", USER_MAPPINGS_ENV)
    return mappings


def load_config(config_path: str = ".prthread.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prthread.yml in the current directory
      3. User mappings from the PRTHREAD_USER_MAPPINGS environment variable
      4. CLI argument overrides
    """
    config = {
        **DEFAULT_CONFIG,
        "email_mappings": dict(DEFAULT_CONFIG["email_mappings"]),
        "default_reviewers": list(DEFAULT_CONFIG["default_reviewers"]),
        "codeowners_paths": list(DEFAULT_CONFIG["codeowners_paths"]),
    }

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            try:
                file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigError(f"{config_path} must contain a mapping of settings")
        config.update(file_config)
    else:
        logger.info("Config file not found at %s, using defaults", config_path)

    # Only an explicit `false` disables auto-matching.
    config["auto_match_by_email"] = config.get("auto_match_by_email") is not False
    config["email_mappings"] = {**(config.get("email_mappings") or {}), **load_user_mappings()}
    config["default_reviewers"] = list(config.get("default_reviewers") or [])

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    if config.get("codeowners_precedence") not in (PRECEDENCE_LAST, PRECEDENCE_FIRST):
        raise ConfigError(
            f"Unknown codeowners_precedence: {config.get('codeowners_precedence')!r}. Choose 'last' or 'first'."
        )

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["slack_bot_token"] = os.environ.get("SLACK_BOT_TOKEN")

    return config
