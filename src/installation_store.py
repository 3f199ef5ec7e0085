"""
S3-backed storage for Slack OAuth installations.

Installations are stored as JSON objects keyed by "{enterprise_id}-{team_id}",
with "none" standing in for a missing id. Org-wide (enterprise) installs are
stored under "{enterprise_id}-none".
"""

import json
from dataclasses import dataclass
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError

from logger_util import get_logger, log
from receiver_errors import InstallationStoreError

_logger = get_logger("installation_store")

_MISSING_KEY_CODES = ("NoSuchKey", "404", "NotFound")


def _log(level: str, event_type: str, data: dict) -> None:
    log(_logger, level, event_type, data, service="slack-lambda-receiver-installation-store")


@dataclass(frozen=True)
class InstallationQuery:
    enterprise_id: Optional[str] = None
    team_id: Optional[str] = None
    is_enterprise_install: bool = False

    @property
    def key(self) -> str:
        enterprise_id = self.enterprise_id or "none"
        if self.is_enterprise_install:
            return f"{enterprise_id}-none"
        return f"{enterprise_id}-{self.team_id or 'none'}"


@dataclass(frozen=True)
class AuthorizeResult:
    team_id: Optional[str] = None
    enterprise_id: Optional[str] = None
    bot_token: Optional[str] = None
    bot_id: Optional[str] = None
    bot_user_id: Optional[str] = None
    user_token: Optional[str] = None


def installation_key(installation: dict) -> str:
    """Storage key for an installation payload."""
    enterprise_id = (installation.get("enterprise") or {}).get("id") or "none"
    team_id = (installation.get("team") or {}).get("id") or "none"
    return f"{enterprise_id}-{team_id}"


class S3InstallationStore:
    """Stores and fetches installations as JSON objects in one S3 bucket."""

    def __init__(self, bucket_name: str, client: Any = None):
        if not bucket_name:
            raise ValueError("bucket_name is required for S3InstallationStore")
        self.bucket_name = bucket_name
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client("s3")
        return self._client

    def store_installation(self, installation: dict) -> None:
        key = installation_key(installation)
        try:
            self.client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=json.dumps(installation).encode("utf-8"),
                ContentType="application/json",
            )
        except ClientError as e:
            _log("ERROR", "installation_store_failed", {"key": key, "error": str(e)})
            raise InstallationStoreError(key, str(e)) from e
        _log("INFO", "installation_stored", {"key": key})

    def fetch_installation(self, query: InstallationQuery) -> Optional[dict]:
        """Return the stored installation, or None if there is none for the query."""
        key = query.key
        try:
            response = self.client.get_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in _MISSING_KEY_CODES:
                _log("INFO", "installation_not_found", {"key": key})
                return None
            _log("ERROR", "installation_fetch_failed", {"key": key, "error": str(e)})
            raise InstallationStoreError(key, str(e)) from e
        return json.loads(response["Body"].read().decode("utf-8"))


def authorize(store: S3InstallationStore, query: InstallationQuery) -> AuthorizeResult:
    """
    Resolve the tokens for a request from its stored installation.

    The installation's own team/enterprise ids win over the query's.

    Raises:
        InstallationStoreError: If no installation exists for the query
    """
    installation = store.fetch_installation(query)
    if installation is None:
        raise InstallationStoreError(query.key, "Failed fetching data from the installation store")

    team = installation.get("team") or {}
    enterprise = installation.get("enterprise") or {}
    bot = installation.get("bot") or {}
    user = installation.get("user") or {}

    return AuthorizeResult(
        team_id=team.get("id") or query.team_id,
        enterprise_id=enterprise.get("id") or query.enterprise_id,
        bot_token=bot.get("token"),
        bot_id=bot.get("id"),
        bot_user_id=bot.get("userId") or bot.get("user_id"),
        user_token=user.get("token"),
    )
