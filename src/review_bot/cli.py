"""Command line entry point serving the bot's webhook endpoint."""

import logging
import sys
from collections.abc import Sequence
from pathlib import Path

import uvicorn
from configargparse import ArgumentParser, Namespace

from review_bot.config import DEFAULT_GITHUB_API_URL, DEFAULT_GITHUB_URL, BotSettings
from review_bot.webhook import create_app

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def build_parser() -> ArgumentParser:
    """Create the parser for all settings, each can also be given via environment."""
    argparser = ArgumentParser(
        prog="review-bot",
        description="GitHub App running buildifier and bazel checks on every pushed "
        "commit, annotating the results on the commit's check runs and offering to "
        "fix formatting issues with a commit.",
    )
    argparser.add_argument(
        "-c",
        "--config",
        is_config_file=True,
        help="Config file providing any of the options below.",
    )
    argparser.add_argument(
        "--app-id",
        type=int,
        env_var="GH_APP_ID",
        help="ID of the GitHub App that is authorized to orchestrate Check Runs.",
    )
    argparser.add_argument(
        "--pem-path",
        type=Path,
        env_var="GH_PRIVATE_KEY_PEM",
        help="Private key to authenticate as the GitHub App specified in --app-id.",
    )
    argparser.add_argument(
        "--webhook-secret",
        type=str,
        env_var="GH_WEBHOOK_SECRET",
        help="Shared secret GitHub signs the webhook deliveries of the App with.",
    )
    argparser.add_argument(
        "--bb-api-key",
        type=str,
        default="",
        env_var="BB_API_KEY",
        help="API key of the remote build service, sent as a header by the build.",
    )
    argparser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",  # noqa: S104
        env_var="REVIEW_BOT_HOST",
        help="Interface the webhook endpoint listens on.",
    )
    argparser.add_argument(
        "--port",
        type=int,
        default=3000,
        env_var="REVIEW_BOT_PORT",
        help="Port the webhook endpoint listens on.",
    )
    argparser.add_argument(
        "--github-api-url",
        type=str,
        default=DEFAULT_GITHUB_API_URL,
        env_var="GH_API_URL",
        help="Base URL of the GitHub REST API.",
    )
    argparser.add_argument(
        "--github-url",
        type=str,
        default=DEFAULT_GITHUB_URL,
        env_var="GH_URL",
        help="Base URL repositories are cloned from and pushed to.",
    )
    argparser.add_argument(
        "--workdir-root",
        type=Path,
        env_var="REVIEW_BOT_WORKDIR",
        help="Directory under which repositories are checked out, defaults to the "
        "system's temporary directory.",
    )
    argparser.add_argument(
        "--buildifier-binary",
        type=str,
        default="buildifier",
        env_var="BUILDIFIER_BINARY",
        help="The buildifier executable.",
    )
    argparser.add_argument(
        "--bazel-binary",
        type=str,
        default="bb",
        env_var="BAZEL_BINARY",
        help="The bazel (or compatible) executable used for the build check.",
    )
    argparser.add_argument(
        "--command-timeout",
        type=float,
        default=1800.0,
        env_var="REVIEW_BOT_COMMAND_TIMEOUT",
        help="Seconds after which a git or check tool invocation is aborted.",
    )
    argparser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        env_var="REVIEW_BOT_LOG_LEVEL",
        help="Log level of the bot.",
    )
    return argparser


def settings_from_args(args: Namespace) -> BotSettings:
    """Validate the parsed arguments, exiting if a required one is missing."""
    for required, flag in (
        (args.app_id, "--app-id"),
        (args.pem_path, "--pem-path"),
        (args.webhook_secret, "--webhook-secret"),
    ):
        if required is None or required == "":
            logging.fatal("[review-bot] %s is required. Aborting.", flag)
            sys.exit(-1)

    settings = BotSettings(
        app_id=args.app_id,
        private_key_pem=args.pem_path,
        webhook_secret=args.webhook_secret,
        bb_api_key=args.bb_api_key,
        host=args.host,
        port=args.port,
        github_api_url=args.github_api_url.rstrip("/"),
        github_url=args.github_url.rstrip("/"),
        buildifier_binary=args.buildifier_binary,
        bazel_binary=args.bazel_binary,
        command_timeout=args.command_timeout,
    )
    if args.workdir_root:
        settings.workdir_root = args.workdir_root
    return settings


def main(argv: Sequence[str] | None = None) -> None:
    """Parse the configuration and serve the webhook endpoint until interrupted."""
    args = build_parser().parse_args(sys.argv[1:] if argv is None else list(argv))
    logging.basicConfig(level=args.log_level.upper(), format=LOG_FORMAT)
    settings = settings_from_args(args)

    logging.info("[review-bot] Listening on http://%s:%d", settings.host, settings.port)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
