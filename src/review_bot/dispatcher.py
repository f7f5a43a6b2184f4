"""Route verified webhook deliveries to the check run lifecycle or a remediation."""

import logging
from enum import Enum

from review_bot.events import CheckRunEvent, CheckSuiteEvent, WebhookEvent
from review_bot.lifecycle import CheckRunManager
from review_bot.remediation import RemediationExecutor

logger = logging.getLogger(__name__)

SUITE_REQUESTED_ACTIONS = frozenset({"requested", "rerequested"})


class DispatchAction(Enum):
    """What the bot did in reaction to a delivery."""

    CREATE_CHECK_RUNS = "create_check_runs"
    RUN_CHECK = "run_check"
    REMEDIATE = "remediate"


class EventDispatcher:
    """Decides which action a webhook delivery triggers, and triggers it."""

    def __init__(
        self,
        app_id: int,
        check_runs: CheckRunManager,
        remediation: RemediationExecutor,
    ) -> None:
        self.app_id = app_id
        self.check_runs = check_runs
        self.remediation = remediation

    def dispatch(self, event: WebhookEvent | None) -> DispatchAction | None:
        """Invoke the action matching a decoded delivery, synchronously.

        :param event: the decoded event, None for event types the bot ignores
        :return: the action invoked, or None if the delivery is not of interest
        """
        if isinstance(event, CheckSuiteEvent):
            return self._dispatch_check_suite(event)
        if isinstance(event, CheckRunEvent):
            return self._dispatch_check_run(event)
        return None

    def _dispatch_check_suite(self, event: CheckSuiteEvent) -> DispatchAction | None:
        if event.action not in SUITE_REQUESTED_ACTIONS:
            return None
        self.check_runs.create_check_runs(
            event.installation.id,
            event.repository,
            event.check_suite.head_sha,
        )
        return DispatchAction.CREATE_CHECK_RUNS

    def _dispatch_check_run(self, event: CheckRunEvent) -> DispatchAction | None:
        owner_app = event.check_run.app
        if owner_app is None or owner_app.id != self.app_id:
            # check runs of other apps installed on the same repository
            return None

        if event.action == "created":
            self.check_runs.run_check(event)
            return DispatchAction.RUN_CHECK
        if event.action == "rerequested":
            self.check_runs.create_check_runs(
                event.installation.id,
                event.repository,
                event.check_run.head_sha,
            )
            return DispatchAction.CREATE_CHECK_RUNS
        if event.action == "requested_action":
            self.remediation.take_requested_action(event)
            return DispatchAction.REMEDIATE
        return None

    def handle(self, event: WebhookEvent | None) -> DispatchAction | None:
        """Dispatch a decoded delivery, logging instead of raising errors.

        The sender of a webhook is GitHub's delivery system, so processing
        failures are operational and only show up in the log.
        """
        try:
            return self.dispatch(event)
        except Exception:
            logger.exception("Error handling %s event", type(event).__name__)
            return None
