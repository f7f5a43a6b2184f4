"""Utility functions to help interface with the GitHub apps & checks API."""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import jwt
import requests
from requests import Response

from review_bot.errors import GitHubAPIError
from review_bot.models import (
    CheckAnnotation,
    CheckResult,
    CheckRunOutput,
    CheckRunStatus,
    CheckRunUpdate,
)

logger = logging.getLogger(__name__)

GITHUB_JSON = "application/vnd.github+json"

# GitHub accepts at most 50 annotations per check run request
MAX_ANNOTATIONS_PER_REQUEST = 50
# GitHub's max length for POST bodies is around 65k bytes
# Use a smaller limit to leave room for other fields and multi-byte unicode characters
MAX_OUTPUT_LENGTH = 30000


def _get_jwt_headers(jwt_str: str, accept_type: str = GITHUB_JSON) -> dict[str, str]:
    return {
        "Accept": f"{accept_type}",
        "Authorization": f"Bearer {jwt_str}",
    }


def gen_github_timestamp() -> str:
    """Generate a timestamp for the current moment in the GitHub-expected format."""
    return datetime.now().astimezone().replace(microsecond=0).isoformat()


def _request(
    method: str,
    url: str,
    headers: dict[str, str],
    timeout: int,
    json_payload: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Send a request, turning every kind of failure into a GitHubAPIError."""
    try:
        response: Response = requests.request(
            method,
            url,
            json=json_payload,
            headers=headers,
            timeout=timeout,
        )
    except requests.RequestException as exc:
        msg = f"{method} {url} failed: {exc}"
        raise GitHubAPIError(msg) from exc
    if not response.ok:
        msg = f"{method} {url} failed"
        raise GitHubAPIError(msg, status_code=response.status_code, body=response.text)
    if not response.content:
        return {}
    return response.json()


@dataclass
class GitHubApp:
    """A GitHub App, identified by its App ID and authenticated by its private key."""

    app_id: int
    private_key_pem: Path
    github_api_url: str = "https://api.github.com"
    timeout: int = 10

    def generate_jwt(self, ttl_seconds: int = 600) -> str:
        """Generate a short-lived JWT authenticating as this app."""
        with self.private_key_pem.open("rb") as pem_file:
            priv_key = jwt.jwk_from_pem(pem_file.read())
        now = int(time.time())
        jwt_payload = {
            # backdated to allow for clock drift between us and GitHub
            "iat": now - 60,
            "exp": now + ttl_seconds - 60,
            "iss": str(self.app_id),
        }
        jwt_instance = jwt.JWT()
        return str(jwt_instance.encode(jwt_payload, priv_key, alg="RS256"))

    def installation_token(self, installation_id: int) -> str:
        """Exchange the app JWT for an access token of one installation.

        :param installation_id: ID of the app installation the token is scoped to
        :raises GitHubAPIError: if GitHub refused to issue the token
        :return: the installation access token
        """
        url = f"{self.github_api_url}/app/installations/{installation_id}/access_tokens"
        payload = _request(
            "POST",
            url,
            headers=_get_jwt_headers(self.generate_jwt()),
            timeout=self.timeout,
        )
        return str(payload.get("token"))

    def checks_client(self, access_token: str) -> "GitHubChecksClient":
        """Checks API client acting on behalf of an installation."""
        return GitHubChecksClient(
            github_api_url=self.github_api_url,
            access_token=access_token,
            timeout=self.timeout,
        )


@dataclass
class GitHubChecksClient:
    """Handler to create, start & finish check runs of a GitHub App installation."""

    github_api_url: str
    access_token: str
    timeout: int = 10
    headers: dict[str, str] = field(init=False)

    def __post_init__(self) -> None:
        """Initialize the headers for usage with the Checks API."""
        self.headers = _get_jwt_headers(self.access_token)

    def _check_runs_url(self, owner: str, repo: str) -> str:
        return f"{self.github_api_url}/repos/{owner}/{repo}/check-runs"

    def create_check_run(self, owner: str, repo: str, name: str, head_sha: str) -> int:
        """Create a queued check run for a commit.

        :param head_sha: the sha revision being evaluated by this check run
        :raises GitHubAPIError: in case the GitHub API could not create the check run
        :return: the ID of the new check run
        """
        payload = _request(
            "POST",
            self._check_runs_url(owner, repo),
            headers=self.headers,
            timeout=self.timeout,
            json_payload={"name": name, "head_sha": head_sha},
        )
        return int(payload["id"])

    def update_check_run(
        self,
        owner: str,
        repo: str,
        run_id: int,
        update: CheckRunUpdate,
    ) -> dict[str, Any]:
        """Update an existing check run, returning GitHub's view of it.

        :raises GitHubAPIError: in case the GitHub API rejected the update
        """
        return _request(
            "PATCH",
            f"{self._check_runs_url(owner, repo)}/{run_id}",
            headers=self.headers,
            timeout=self.timeout,
            json_payload=update.to_payload(),
        )

    def start_check_run(self, owner: str, repo: str, run_id: int, name: str) -> None:
        """Mark a check run as in progress."""
        self.update_check_run(
            owner,
            repo,
            run_id,
            CheckRunUpdate(
                name=name,
                status=CheckRunStatus.IN_PROGRESS,
                started_at=gen_github_timestamp(),
            ),
        )

    def complete_check_run(
        self,
        owner: str,
        repo: str,
        run_id: int,
        name: str,
        result: CheckResult,
    ) -> None:
        """Finish a check run with the given result.

        Annotations beyond the per-request limit of GitHub are appended to the
        output with follow-up updates.
        """
        annotations = [CheckAnnotation.from_annotation(a) for a in result.annotations]
        batches = [
            annotations[i : i + MAX_ANNOTATIONS_PER_REQUEST]
            for i in range(0, len(annotations), MAX_ANNOTATIONS_PER_REQUEST)
        ] or [[]]
        summary = result.summary
        if len(summary) > MAX_OUTPUT_LENGTH:
            summary = (
                summary[:MAX_OUTPUT_LENGTH]
                + "\n\n... (truncated output, see full text log for details) ..."
            )

        self.update_check_run(
            owner,
            repo,
            run_id,
            CheckRunUpdate(
                name=name,
                status=CheckRunStatus.COMPLETED,
                conclusion=result.conclusion,
                completed_at=gen_github_timestamp(),
                output=CheckRunOutput(
                    title=result.title,
                    summary=summary,
                    annotations=batches[0] or None,
                ),
                details_url=result.url or None,
                actions=[result.action] if result.action else None,
            ),
        )
        for batch in batches[1:]:
            self.update_check_run(
                owner,
                repo,
                run_id,
                CheckRunUpdate(
                    output=CheckRunOutput(
                        title=result.title,
                        summary=summary,
                        annotations=batch,
                    ),
                ),
            )
        logger.info(
            "Completed check run %d (%s) on %s/%s: %s with %d annotation(s)",
            run_id,
            name,
            owner,
            repo,
            result.conclusion.value,
            len(annotations),
        )
