# errors.py
# Error taxonomy for the container filesystem access layer

from typing import Optional, Sequence


class DcviewError(Exception):
    """Base class for every error raised by dcview."""


class ConfigError(DcviewError):
    """Config file exists but could not be read, parsed, or validated."""


class CommandFailed(DcviewError):
    """External runtime command exited non-zero or produced no usable output."""

    def __init__(
        self,
        message: str,
        args: Sequence[str] = (),
        exit_code: Optional[int] = None,
        output: bytes = b"",
    ):
        super().__init__(message)
        self.argv = list(args)
        self.exit_code = exit_code
        self.output = output


class ParseFailed(DcviewError):
    """Command output did not look like a long-form directory listing."""


class NotFound(DcviewError):
    """No archive entry exists at the requested path."""


class NotARegularFile(DcviewError):
    """Content was requested for a directory, symlink, or other special entry."""


class UnsupportedArchitecture(DcviewError):
    """No helper payload slot exists for the requested architecture."""


class MissingPayload(DcviewError):
    """The helper slot exists but no payload was baked into the build."""


class StagingError(DcviewError, OSError):
    """Temp file staging of the helper binary failed."""


class ArchiveError(DcviewError, OSError):
    """Archive framing is corrupt or the stream ended early."""


class AllStrategiesExhausted(DcviewError):
    """
    Both the native and the helper strategy failed.

    Keeps both underlying errors so callers can tell a target that lacks
    utilities apart from one that is unreachable.
    """

    def __init__(self, operation: str, target: str, path: str,
                 native: Exception, helper: Exception):
        self.operation = operation
        self.target = target
        self.path = path
        self.native = native
        self.helper = helper
        super().__init__(
            f"unable to {operation}: native and helper strategies both failed\n"
            f"Container: {target}, Path: {path}\n"
            f"native: {native}\n"
            f"helper: {helper}"
        )
