"""Run external tools as subprocesses and capture their output streams."""

import logging
import os
import subprocess
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from review_bot.errors import ToolExecutionError

logger = logging.getLogger(__name__)

_MASK = "****"


def mask_secrets(text: str, secrets: Iterable[str]) -> str:
    """Replace every occurrence of the given secrets in ``text``."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, _MASK)
    return text


@dataclass
class CommandResult:
    """Captured outcome of a single tool invocation."""

    args: list[str]
    returncode: int | None
    stdout: str = ""
    stderr: str = ""
    error: ToolExecutionError | None = field(default=None)

    def raise_for_error(self) -> None:
        """Raise the stored execution error, if there is one."""
        if self.error is not None:
            raise self.error


def run_command(  # noqa: PLR0913
    tool: str,
    *args: str,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
    stderr_is_output: bool = True,
    secrets: Iterable[str] = (),
) -> CommandResult:
    """Run ``tool`` with ``args`` and capture stdout and stderr.

    Tools that report their findings on stderr exit non-zero whenever they find
    something, so with ``stderr_is_output`` set a non-empty stderr suppresses the
    non-zero exit status and is handed to the caller as output to parse. A tool
    failing for an unrelated reason while writing to stderr is indistinguishable
    from one reporting diagnostics in that mode.

    :param tool: name or path of the executable
    :param cwd: working directory of the subprocess, the caller's is never changed
    :param env: extra environment variables, merged over the inherited environment
    :param timeout: seconds after which the subprocess is killed
    :param stderr_is_output: treat non-empty stderr as output rather than failure
    :param secrets: values masked in log lines and error messages
    :return: the captured result, with ``error`` set if the tool failed
    """
    secrets = list(secrets)
    cmd = [tool, *args]
    printable = mask_secrets(" ".join(cmd), secrets)
    logger.debug("Running %r in %s", printable, cwd or ".")

    run_env = None
    if env:
        run_env = {**os.environ, **env}

    try:
        completed = subprocess.run(  # noqa: S603
            cmd,
            cwd=cwd,
            env=run_env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as exc:
        return CommandResult(
            args=cmd,
            returncode=None,
            error=ToolExecutionError(f"{tool} not found: {exc}"),
        )
    except subprocess.TimeoutExpired:
        # partial output of a killed tool is not parsed
        logger.error("Command %r timed out after %s seconds", printable, timeout)
        return CommandResult(
            args=cmd,
            returncode=None,
            error=ToolExecutionError(f"{printable!r} timed out after {timeout}s"),
        )

    result = CommandResult(
        args=cmd,
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )
    if completed.returncode == 0:
        return result

    logger.info("Command %r exited with status %d", printable, completed.returncode)
    if result.stderr and stderr_is_output:
        logger.debug("Treating stderr of %r as output", printable)
        return result

    stderr = mask_secrets(result.stderr.strip(), secrets)
    result.error = ToolExecutionError(
        f"{printable!r} exited with status {completed.returncode}"
        + (f": {stderr}" if stderr else ""),
    )
    return result

