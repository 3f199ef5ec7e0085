"""
Receiver configuration from the Lambda environment.

Environment variables:
  SLACK_SIGNING_SECRET               signing secret (plain value)
  SLACK_SIGNING_SECRET_NAME          Secrets Manager name/ARN holding the signing secret;
                                     takes precedence over SLACK_SIGNING_SECRET
  LOG_LEVEL                          DEBUG, INFO, WARN or ERROR (default INFO)
  SLACK_INSTALLATION_S3_BUCKET_NAME  bucket for OAuth installations (optional)
  SLACK_BOT_TOKEN                    single-workspace bot token (optional)
"""

import json
import os
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.exceptions import ClientError

from logger_util import get_logger, log
from receiver_errors import ConfigurationError

_logger = get_logger("config")

# Cache for secrets (to avoid repeated API calls within a warm container)
_secrets_cache: dict[str, str] = {}


def _log(level: str, event_type: str, data: dict) -> None:
    log(_logger, level, event_type, data, service="slack-lambda-receiver-config")


def get_secret_from_secrets_manager(secret_name: str) -> str:
    """
    Retrieve secret value from AWS Secrets Manager with caching.

    JSON secrets of the form {"signing_secret": "..."} are unwrapped;
    any other value is returned as-is.

    Raises:
        ConfigurationError: If the secret cannot be read
    """
    if secret_name in _secrets_cache:
        return _secrets_cache[secret_name]

    try:
        client = boto3.client("secretsmanager")
        response = client.get_secret_value(SecretId=secret_name)
    except ClientError as e:
        _log("ERROR", "secret_retrieval_failed", {
            "secret_name": secret_name,
            "error_code": e.response.get("Error", {}).get("Code"),
        })
        raise ConfigurationError(f"Unable to read secret {secret_name}") from e

    secret_value = response["SecretString"]
    try:
        parsed = json.loads(secret_value)
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict) and "signing_secret" in parsed:
        secret_value = parsed["signing_secret"]

    _secrets_cache[secret_name] = secret_value
    return secret_value


@dataclass(frozen=True)
class ReceiverConfig:
    signing_secret: str
    log_level: str = "INFO"
    installation_bucket: Optional[str] = None
    bot_token: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "ReceiverConfig":
        """
        Build configuration from environment variables.

        Raises:
            ConfigurationError: If no signing secret is configured
        """
        env = os.environ if environ is None else environ

        secret_name = env.get("SLACK_SIGNING_SECRET_NAME")
        if secret_name:
            signing_secret = get_secret_from_secrets_manager(secret_name)
        else:
            signing_secret = env.get("SLACK_SIGNING_SECRET", "")
        if not signing_secret:
            raise ConfigurationError(
                "SLACK_SIGNING_SECRET or SLACK_SIGNING_SECRET_NAME environment variable is required"
            )

        return cls(
            signing_secret=signing_secret,
            log_level=env.get("LOG_LEVEL", "INFO"),
            installation_bucket=env.get("SLACK_INSTALLATION_S3_BUCKET_NAME") or None,
            bot_token=env.get("SLACK_BOT_TOKEN") or None,
        )
