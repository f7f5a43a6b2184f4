"""Registry of the checks run by the bot, mapping each check name to its runner."""

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from review_bot.commands import run_command
from review_bot.config import BotSettings
from review_bot.errors import CheckNotFoundError
from review_bot.formatters.bazel import format_bazel_build_output
from review_bot.formatters.buildifier import format_buildifier_check_output
from review_bot.models import CheckName, CheckResult

BUILD_TARGETS = "//..."
BB_API_KEY_HEADER = "x-buildbuddy-api-key"


@dataclass(frozen=True)
class CheckContext:
    """What a runner may use besides the working copy it checks."""

    settings: BotSettings


CheckRunner = Callable[[CheckContext, Path], CheckResult | None]


def run_buildifier_check(context: CheckContext, workdir: Path) -> CheckResult:
    """Check whether all BUILD files in ``workdir`` are formatted by buildifier."""
    command = run_command(
        context.settings.buildifier_binary,
        "--mode=check",
        "-r",
        str(workdir),
        timeout=context.settings.command_timeout,
    )
    return format_buildifier_check_output(command, workdir)


def run_bazel_build_check(context: CheckContext, workdir: Path) -> CheckResult | None:
    """Build every target of the workspace in ``workdir``."""
    api_key = context.settings.bb_api_key.get_secret_value()
    args = ["build", BUILD_TARGETS]
    if api_key:
        args.append(f"--remote_header={BB_API_KEY_HEADER}={api_key}")
    command = run_command(
        context.settings.bazel_binary,
        *args,
        cwd=workdir,
        timeout=context.settings.command_timeout,
        secrets=[api_key],
    )
    return format_bazel_build_output(command, workdir)


CHECK_RUNNERS: dict[CheckName, CheckRunner] = {
    CheckName.BUILDIFIER: run_buildifier_check,
    CheckName.BAZEL: run_bazel_build_check,
}


def get_check_runner(check_name: str) -> CheckRunner:
    """Look up the runner registered for ``check_name``.

    :raises CheckNotFoundError: if the name is not a registered check
    """
    try:
        return CHECK_RUNNERS[CheckName(check_name)]
    except (ValueError, KeyError) as exc:
        msg = f"no check runner registered for {check_name!r}"
        raise CheckNotFoundError(msg) from exc
