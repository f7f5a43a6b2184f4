"""Drive check runs from creation to completion against the GitHub checks API."""

import logging

from review_bot.checks import CheckContext, get_check_runner
from review_bot.config import BotSettings
from review_bot.errors import ToolExecutionError
from review_bot.events import CheckRunEvent, Repository
from review_bot.github_api import GitHubApp
from review_bot.models import CHECK_NAMES, GitRef
from review_bot.repository import cleanup_workdir, get_workdir, provision_repository

logger = logging.getLogger(__name__)


class CheckRunManager:
    """Creates the check runs of a commit and executes them one at a time."""

    def __init__(self, github_app: GitHubApp, settings: BotSettings) -> None:
        self.github_app = github_app
        self.settings = settings
        self.context = CheckContext(settings=settings)

    def create_check_runs(
        self,
        installation_id: int,
        repository: Repository,
        head_sha: str,
    ) -> list[int]:
        """Create one check run per registered check for ``head_sha``.

        GitHub answers every creation with a ``check_run.created`` delivery,
        which is when the check is actually executed.
        """
        token = self.github_app.installation_token(installation_id)
        client = self.github_app.checks_client(token)
        run_ids = []
        for check_name in CHECK_NAMES:
            run_id = client.create_check_run(
                repository.owner.login,
                repository.name,
                check_name,
                head_sha,
            )
            logger.info(
                "Created check run %d (%s) for %s@%s",
                run_id,
                check_name,
                repository.full_name,
                head_sha,
            )
            run_ids.append(run_id)
        return run_ids

    def run_check(self, event: CheckRunEvent) -> None:
        """Execute the check run announced by ``event`` and post its result.

        The run is marked in progress before any work is done. Any failure
        while resolving the runner, provisioning the repository or running the
        check leaves the run in progress, a rerequest starts from scratch.
        """
        repository = event.repository
        owner = repository.owner.login
        run_id = event.check_run.id
        check_name = event.check_run.name

        token = self.github_app.installation_token(event.installation.id)
        client = self.github_app.checks_client(token)
        client.start_check_run(owner, repository.name, run_id, check_name)
        logger.info("Check run %d (%s) in progress", run_id, check_name)

        runner = get_check_runner(check_name)
        workdir = get_workdir(self.settings.workdir_root, repository.full_name, check_name)
        try:
            provision_repository(
                repository.full_name,
                token,
                GitRef(hash=event.check_run.head_sha),
                workdir,
                github_url=self.settings.github_url,
                timeout=self.settings.command_timeout,
            )
            result = runner(self.context, workdir)
            if result is None:
                msg = f"{check_name} produced no output"
                raise ToolExecutionError(msg)
            client.complete_check_run(owner, repository.name, run_id, check_name, result)
        finally:
            cleanup_workdir(workdir)
