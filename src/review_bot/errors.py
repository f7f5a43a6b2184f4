"""Exceptions raised while handling webhook deliveries."""


class ReviewBotError(Exception):
    """Base class for every operational failure of the bot."""


class GitHubAPIError(ReviewBotError):
    """A GitHub API call failed, either at transport level or with a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        base = super().__str__()
        if self.status_code is None:
            return base
        return f"{base} (status {self.status_code}): {self.body}"


class ProvisioningError(ReviewBotError):
    """The repository could not be cloned or checked out."""


class CheckNotFoundError(ReviewBotError):
    """No runner is registered for the requested check name."""


class ToolExecutionError(ReviewBotError):
    """A check tool could not be run, or ran without producing usable output."""


class RemediationError(ReviewBotError):
    """A step of the automatic fix flow failed."""
