"""Helpers shared by the log formatters."""

import logging
import os
from collections.abc import Sequence
from pathlib import Path

from review_bot.models import Annotation, CheckRunConclusion

logger = logging.getLogger(__name__)

NO_ISSUES_SUMMARY = "No issues found."


def get_conclusion(annotations: Sequence[Annotation]) -> CheckRunConclusion:
    """Derive the check run conclusion from the produced annotations."""
    return CheckRunConclusion.FAILURE if annotations else CheckRunConclusion.SUCCESS


def to_repo_relative_path(path: str, local_repo_base: Path) -> str | None:
    """Convert a path reported by a tool into a forward-slash repo relative path.

    Relative paths are taken to be relative to the repository root already.
    Absolute paths outside of ``local_repo_base`` are logged and converted on a
    best-effort basis, which yields a path starting with ``..``.

    :param path: the path as printed by the tool
    :param local_repo_base: root directory of the provisioned repository
    :return: the repo relative path, or None if ``path`` is blank
    """
    raw = path.strip()
    if not raw:
        return None
    candidate = Path(raw)
    if not candidate.is_absolute():
        return candidate.as_posix()
    try:
        return candidate.relative_to(local_repo_base).as_posix()
    except ValueError:
        pass
    try:
        # the tool may report the resolved location of a symlinked root
        return candidate.resolve().relative_to(local_repo_base.resolve()).as_posix()
    except ValueError:
        logger.warning("%s is not located under %s", candidate, local_repo_base)
    return Path(os.path.relpath(candidate, local_repo_base)).as_posix()
