"""Formatter to process bazel build logs and yield GitHub annotations."""

import logging
import re
from pathlib import Path

from review_bot.commands import CommandResult
from review_bot.formatters.utils import (
    NO_ISSUES_SUMMARY,
    get_conclusion,
    to_repo_relative_path,
)
from review_bot.models import Annotation, AnnotationLevel, CheckResult

logger = logging.getLogger(__name__)

TITLE = "Build result"
FAILURE_SUMMARY = "Build did not complete successfully"

DIAGNOSTIC_PATTERN = re.compile(
    r"^(?P<file>.*):(?P<line>\d+):(?P<column>\d+):(?P<message>.*)",
)
RESULTS_URL_PATTERN = re.compile(r"Streaming build results to: (?P<url>.*)")

# framing lines printed by bazel itself, they may still look like diagnostics
NOISE_PREFIXES = ("ERROR: ", "INFO: ", "FAILED: ")


def format_bazel_build_output(
    command: CommandResult,
    local_repo_base: Path,
) -> CheckResult | None:
    """Generate the check result for a bazel build from its stdout.

    :param command: the captured build invocation
    :param local_repo_base: local repository base path, for deriving repo-relative paths
    :raises ToolExecutionError: if the build failed without printing anything
    :return: the check result, or None if the build printed nothing and did not fail
    """
    if not command.stdout:
        command.raise_for_error()
        return None

    annotations: list[Annotation] = []
    url: str | None = None
    seen_lines: set[str] = set()

    for raw_line in command.stdout.splitlines():
        line = raw_line.strip()

        if url is None and (url_match := RESULTS_URL_PATTERN.search(line)):
            url = url_match.group("url").strip()
            logger.info("Found build results url %s", url)

        if line.startswith(NOISE_PREFIXES):
            continue
        if not (match := DIAGNOSTIC_PATTERN.match(line)):
            continue
        # the same diagnostic is repeated for every target depending on the file
        if line in seen_lines:
            continue
        seen_lines.add(line)

        annotation = _get_annotation(match, local_repo_base)
        if annotation is not None:
            logger.debug("bazel: %s", line)
            annotations.append(annotation)

    conclusion = get_conclusion(annotations)
    return CheckResult(
        title=TITLE,
        summary=FAILURE_SUMMARY if annotations else NO_ISSUES_SUMMARY,
        conclusion=conclusion,
        annotations=annotations,
        url=url,
    )


def _get_annotation(match: re.Match[str], local_repo_base: Path) -> Annotation | None:
    path = to_repo_relative_path(match.group("file"), local_repo_base)
    if not path:
        return None
    line_str = match.group("line")
    try:
        line_num = int(line_str)
    except ValueError:
        logger.warning("Unable to parse line number %r", line_str)
        line_num = 1
    if line_num < 1:
        logger.warning("Line number %d out of range, using line 1 of %s", line_num, path)
        line_num = 1
    return Annotation(
        path=path,
        line=line_num,
        severity=AnnotationLevel.FAILURE,
        message=match.group("message").strip(),
    )
