"""Formatter to process buildifier check output and yield GitHub annotations.

``buildifier --mode=check -r <dir>`` prints one line per badly formatted file on
stderr, e.g. ``/tmp/repo/pkg/BUILD # reformat``. Every such file gets a single
annotation on its first line, and the check offers the buildifier fix action.
"""

import logging
from pathlib import Path

from review_bot.commands import CommandResult
from review_bot.formatters.utils import (
    NO_ISSUES_SUMMARY,
    get_conclusion,
    to_repo_relative_path,
)
from review_bot.models import (
    BUILDIFIER_FIX,
    Annotation,
    AnnotationLevel,
    CheckAction,
    CheckResult,
    CheckRunConclusion,
)

logger = logging.getLogger(__name__)

TITLE = "Buildifier Lint Result"
COMMENT_DELIMITER = "#"

FIX_ACTION = CheckAction(
    label="Fix this",
    description="Automatically fix buildifier errors.",
    identifier=BUILDIFIER_FIX,
)


def format_buildifier_check_output(
    command: CommandResult,
    local_repo_base: Path,
) -> CheckResult:
    """Generate the check result for a buildifier run in check mode.

    :param command: the captured buildifier invocation
    :param local_repo_base: local repository base path, for deriving repo-relative paths
    :raises ToolExecutionError: if buildifier failed without printing anything
    """
    if not command.stderr:
        command.raise_for_error()
        return CheckResult(
            title=TITLE,
            summary=NO_ISSUES_SUMMARY,
            conclusion=CheckRunConclusion.SUCCESS,
        )

    annotations: list[Annotation] = []
    for line in command.stderr.splitlines():
        logger.debug("buildifier: %r", line)
        file_part = line.split(COMMENT_DELIMITER, 1)[0]
        path = to_repo_relative_path(file_part, local_repo_base)
        if not path:
            continue
        annotations.append(
            Annotation(
                path=path,
                line=1,
                severity=AnnotationLevel.FAILURE,
                message=f"file {path} needs reformat",
            ),
        )

    conclusion = get_conclusion(annotations)
    if conclusion == CheckRunConclusion.SUCCESS:
        return CheckResult(title=TITLE, summary=NO_ISSUES_SUMMARY, conclusion=conclusion)

    return CheckResult(
        title=TITLE,
        summary=f"{len(annotations)} BUILD files need reformat",
        conclusion=conclusion,
        annotations=annotations,
        action=FIX_ACTION,
    )
