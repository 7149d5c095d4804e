# executor.py
# Command-execution primitive for the container runtime CLI
#
# Runs an argument list against the runtime binary (docker, podman, ...)
# and returns combined stdout+stderr plus the exit status. Everything
# above this layer only sees CommandResult, so tests swap in a fake runner.

import logging
import subprocess
import time
from dataclasses import dataclass
from typing import Protocol, Sequence

from dcview.modules.errors import CommandFailed
from dcview.modules.formatters import format_command


logger = logging.getLogger(__name__)

# Output longer than this is truncated in debug logs
LOG_OUTPUT_LIMIT = 144


@dataclass(frozen=True)
class CommandResult:
    """Combined output and exit status of one runtime invocation."""
    output: bytes
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def text(self) -> str:
        return self.output.decode("utf-8", errors="replace")


class CommandRunner(Protocol):
    def __call__(self, args: Sequence[str]) -> CommandResult:
        ...


def _truncate(text: str, limit: int = LOG_OUTPUT_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[:limit - 3] + "..."


class RuntimeExecutor:
    """
    Run runtime CLI commands as local subprocesses.

    Usage:
        run = RuntimeExecutor("docker")
        result = run(["exec", "abc123", "ls", "-la", "/"])
        if result.ok:
            print(result.text)

    No timeout is applied; a hung command hangs the caller. A deadline
    belongs here (subprocess.run timeout) rather than in the callers.
    """

    def __init__(self, runtime: str = "docker"):
        self.runtime = runtime

    def __call__(self, args: Sequence[str]) -> CommandResult:
        argv = [self.runtime, *args]
        logger.info("Executing runtime command: %s", format_command(argv))

        start = time.monotonic()
        try:
            process = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                check=False,
            )
        except OSError as e:
            # Runtime binary missing or not executable
            logger.debug("Runtime command could not start: %s", e)
            return CommandResult(output=str(e).encode("utf-8"), exit_code=127)
        duration_ms = int((time.monotonic() - start) * 1000)

        result = CommandResult(output=process.stdout or b"", exit_code=process.returncode)
        logger.debug(
            "Executed command %s (exit=%d, %dms): %s",
            format_command(argv),
            result.exit_code,
            duration_ms,
            _truncate(result.text),
        )
        return result


def execute_captured(run: CommandRunner, args: Sequence[str]) -> bytes:
    """
    Run a command and return its output, raising on a non-zero exit.

    Args:
        run: Command runner (RuntimeExecutor or a test fake)
        args: Arguments for the runtime CLI (without the binary name)

    Returns:
        Combined stdout+stderr bytes

    Raises:
        CommandFailed: if the command exits non-zero
    """
    result = run(list(args))
    if not result.ok:
        raise CommandFailed(
            f"command failed with exit code {result.exit_code}: "
            f"{format_command(args)}\n{result.text.strip()}",
            args=args,
            exit_code=result.exit_code,
            output=result.output,
        )
    return result.output
