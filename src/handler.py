"""
Lambda entry point: Slack slash commands and events via API Gateway.

Configuration is read from the environment on cold start (see receiver_config).
When SLACK_INSTALLATION_S3_BUCKET_NAME is set, listener tokens are resolved
from stored OAuth installations; otherwise SLACK_BOT_TOKEN is used.
"""

from functools import partial

from command_app import App
from installation_store import S3InstallationStore, authorize
from receiver import AwsLambdaReceiver
from receiver_config import ReceiverConfig


def create_app(config: ReceiverConfig) -> App:
    if config.installation_bucket:
        store = S3InstallationStore(config.installation_bucket)
        app = App(authorize=partial(authorize, store))
    else:
        app = App(bot_token=config.bot_token)

    @app.command("/hello-bolt-python")
    async def hello(body, ack, context):
        await ack("I'm working!")

    return app


def create_handler(config: ReceiverConfig):
    receiver = AwsLambdaReceiver(
        signing_secret=config.signing_secret,
        log_level=config.log_level,
    )
    receiver.init(create_app(config))
    return receiver.to_handler()


_handler = None


def lambda_handler(event, context):
    """Lambda handler; builds the receiver once per container."""
    global _handler
    if _handler is None:
        _handler = create_handler(ReceiverConfig.from_env())
    return _handler(event, context)
