"""Models of the GitHub webhook payloads the bot reacts to.

Only the fields the bot uses are modelled, everything else in a payload is ignored.
"""

from pydantic import BaseModel

CHECK_SUITE_EVENT = "check_suite"
CHECK_RUN_EVENT = "check_run"


class Installation(BaseModel):
    """The app installation a delivery belongs to."""

    id: int


class Owner(BaseModel):
    """Account owning a repository."""

    login: str


class Repository(BaseModel):
    """Repository an event happened in."""

    name: str
    full_name: str
    owner: Owner


class App(BaseModel):
    """The GitHub App owning a check run."""

    id: int


class CheckSuite(BaseModel):
    """Check suite of a commit."""

    head_sha: str
    head_branch: str | None = None


class CheckRun(BaseModel):
    """A single check run."""

    id: int
    name: str
    head_sha: str
    app: App | None = None
    check_suite: CheckSuite | None = None


class RequestedAction(BaseModel):
    """The follow-up action a user clicked on a check run."""

    identifier: str


class CheckSuiteEvent(BaseModel):
    """Payload of a ``check_suite`` delivery."""

    action: str
    installation: Installation
    repository: Repository
    check_suite: CheckSuite


class CheckRunEvent(BaseModel):
    """Payload of a ``check_run`` delivery."""

    action: str
    installation: Installation
    repository: Repository
    check_run: CheckRun
    requested_action: RequestedAction | None = None


WebhookEvent = CheckSuiteEvent | CheckRunEvent

_EVENT_MODELS: dict[str, type[WebhookEvent]] = {
    CHECK_SUITE_EVENT: CheckSuiteEvent,
    CHECK_RUN_EVENT: CheckRunEvent,
}


def parse_event(event_type: str, payload: dict) -> WebhookEvent | None:
    """Decode a webhook payload according to its ``X-GitHub-Event`` type.

    :param event_type: the event type announced by GitHub
    :param payload: the decoded json body of the delivery
    :raises ValidationError: if a payload of a handled type is malformed
    :return: the event, or None for event types the bot does not handle
    """
    model = _EVENT_MODELS.get(event_type)
    if model is None:
        return None
    return model.model_validate(payload)
