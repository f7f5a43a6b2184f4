"""Execute the one-click fixes offered on completed check runs."""

import logging
from pathlib import Path

from review_bot.commands import run_command
from review_bot.config import BotSettings
from review_bot.errors import RemediationError, ToolExecutionError
from review_bot.events import CheckRunEvent
from review_bot.github_api import GitHubApp
from review_bot.models import BUILDIFIER_FIX, GitRef
from review_bot.repository import (
    authenticated_remote_url,
    checkout_tracking_branch,
    cleanup_workdir,
    commit_all,
    get_workdir,
    has_changes,
    provision_repository,
    push_branch,
)

logger = logging.getLogger(__name__)

FIX_COMMIT_MESSAGE = "Fix BUILD lint errors"
FIX_AUTHOR_NAME = "Review Bot"
FIX_AUTHOR_EMAIL = "review-bot@users.noreply.github.com"


class RemediationExecutor:
    """Applies an automatic fix to the branch of a check run and pushes it."""

    def __init__(self, github_app: GitHubApp, settings: BotSettings) -> None:
        self.github_app = github_app
        self.settings = settings

    def take_requested_action(self, event: CheckRunEvent) -> bool:
        """Run the fix requested by the user, if it is one the bot knows.

        :raises ReviewBotError: if any step fails, nothing is pushed in that case
        :return: whether a fix commit was pushed
        """
        identifier = event.requested_action.identifier if event.requested_action else None
        if identifier != BUILDIFIER_FIX:
            logger.info("Ignoring unknown requested action %r", identifier)
            return False

        suite = event.check_run.check_suite
        branch = suite.head_branch if suite else None
        if not branch:
            msg = f"check run {event.check_run.id} has no head branch to fix"
            raise RemediationError(msg)

        full_repo_name = event.repository.full_name
        token = self.github_app.installation_token(event.installation.id)
        workdir = get_workdir(self.settings.workdir_root, full_repo_name, BUILDIFIER_FIX)
        try:
            provision_repository(
                full_repo_name,
                token,
                GitRef(branch=branch),
                workdir,
                github_url=self.settings.github_url,
                timeout=self.settings.command_timeout,
            )
            try:
                checkout_tracking_branch(workdir, branch)
                self._fix_buildifier_errors(workdir)
                if not has_changes(workdir):
                    logger.info("buildifier left %s@%s unchanged", full_repo_name, branch)
                    return False
                logger.info("Creating commit on %s@%s", full_repo_name, branch)
                commit_all(workdir, FIX_COMMIT_MESSAGE, FIX_AUTHOR_NAME, FIX_AUTHOR_EMAIL)
                remote_url = authenticated_remote_url(
                    self.settings.github_url,
                    token,
                    full_repo_name,
                )
                push_branch(
                    workdir,
                    remote_url,
                    branch,
                    token,
                    timeout=self.settings.command_timeout,
                )
            except ToolExecutionError as exc:
                msg = f"failed to fix {full_repo_name}@{branch}: {exc}"
                raise RemediationError(msg) from exc
        finally:
            cleanup_workdir(workdir)

        logger.info("Pushed buildifier fixes to %s@%s", full_repo_name, branch)
        return True

    def _fix_buildifier_errors(self, workdir: Path) -> None:
        command = run_command(
            self.settings.buildifier_binary,
            "--mode=fix",
            "-r",
            str(workdir),
            timeout=self.settings.command_timeout,
        )
        if command.error is not None:
            msg = f"buildifier could not fix {workdir}: {command.error}"
            raise RemediationError(msg) from command.error
