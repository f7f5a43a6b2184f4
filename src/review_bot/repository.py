"""Provision local working copies of GitHub repositories with the git cli."""

import logging
import shutil
from pathlib import Path
from urllib.parse import urlsplit

from review_bot.commands import mask_secrets, run_command
from review_bot.errors import ProvisioningError, ToolExecutionError
from review_bot.models import GitRef

logger = logging.getLogger(__name__)

GIT = "git"


def get_workdir(root: Path, full_repo_name: str, marker: str) -> Path:
    """Directory owned by one flow, namespaced by repository and check or fix marker."""
    return root.joinpath(*full_repo_name.split("/"), marker)


def authenticated_remote_url(github_url: str, token: str, full_repo_name: str) -> str:
    """Remote url authenticating git operations with an installation token."""
    parts = urlsplit(github_url)
    return f"{parts.scheme}://x-access-token:{token}@{parts.netloc}/{full_repo_name}.git"


def _git(
    workdir: Path | None,
    *args: str,
    secrets: tuple[str, ...] = (),
    timeout: float | None = None,
) -> str:
    command = run_command(
        GIT,
        *args,
        cwd=workdir,
        timeout=timeout,
        stderr_is_output=False,
        secrets=secrets,
    )
    command.raise_for_error()
    if command.stderr:
        logger.debug("%s", mask_secrets(command.stderr.strip(), secrets))
    return command.stdout


def provision_repository(  # noqa: PLR0913
    full_repo_name: str,
    token: str,
    ref: GitRef,
    target_dir: Path,
    *,
    github_url: str,
    timeout: float | None = None,
) -> Path:
    """Clone ``full_repo_name`` into ``target_dir`` and check out ``ref``.

    A directory left over at ``target_dir`` by an earlier delivery is removed first.

    :param full_repo_name: ``owner/repo`` name of the repository
    :param token: installation token used to authenticate the clone
    :param ref: commit hash or branch to check out
    :param target_dir: where to put the working copy
    :param github_url: base url of the GitHub instance hosting the repository
    :param timeout: seconds after which each git command is aborted
    :raises ProvisioningError: if any git operation fails
    :return: the directory holding the working copy
    """
    if target_dir.exists():
        logger.warning("Removing leftover working copy at %s", target_dir)
        shutil.rmtree(target_dir, ignore_errors=True)
    target_dir.parent.mkdir(parents=True, exist_ok=True)

    url = authenticated_remote_url(github_url, token, full_repo_name)
    try:
        _git(None, "clone", url, str(target_dir), secrets=(token,), timeout=timeout)
        if ref.branch:
            _git(target_dir, "fetch", "origin", ref.branch, timeout=timeout)
        if ref.hash:
            _git(target_dir, "checkout", "--force", ref.hash, timeout=timeout)
    except ToolExecutionError as exc:
        msg = f"unable to provision {full_repo_name} at {ref!r} in {target_dir}: {exc}"
        raise ProvisioningError(msg) from exc
    logger.info("Provisioned %s at %r in %s", full_repo_name, ref, target_dir)
    return target_dir


def checkout_tracking_branch(workdir: Path, branch: str) -> None:
    """Check out a local ``branch`` tracking its remote counterpart."""
    _git(workdir, "checkout", "-B", branch, "--track", f"origin/{branch}")


def has_changes(workdir: Path) -> bool:
    """Whether tracked files in the working copy were modified."""
    return bool(_git(workdir, "status", "--porcelain", "--untracked-files=no").strip())


def commit_all(workdir: Path, message: str, author_name: str, author_email: str) -> None:
    """Commit every modified tracked file as the given author."""
    _git(
        workdir,
        "-c",
        f"user.name={author_name}",
        "-c",
        f"user.email={author_email}",
        "commit",
        "--all",
        "--message",
        message,
        "--author",
        f"{author_name} <{author_email}>",
    )


def push_branch(
    workdir: Path,
    remote_url: str,
    branch: str,
    token: str,
    timeout: float | None = None,
) -> None:
    """Push the checked out commit to ``branch`` of the authenticated remote."""
    _git(
        workdir,
        "push",
        remote_url,
        f"HEAD:refs/heads/{branch}",
        secrets=(token,),
        timeout=timeout,
    )


def cleanup_workdir(workdir: Path) -> None:
    """Remove a working copy, logging rather than raising on failure."""
    try:
        shutil.rmtree(workdir)
    except FileNotFoundError:
        pass
    except OSError:
        logger.exception("Failed to clean up dir %s", workdir)
