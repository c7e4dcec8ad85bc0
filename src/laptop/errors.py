"""Exception hierarchy for the provisioning run."""

from typing import Optional, Sequence


class LaptopError(Exception):
    """Base class for every error raised by laptop."""


class CommandFailure(LaptopError, RuntimeError):
    """An external command exited nonzero where success was required.

    Fatal: aborts the run and leaves the persisted stage untouched, so the
    next invocation retries the same stage.
    """

    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = ""):
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        message = f"COMMAND_FAILED: exit code {returncode}: {' '.join(self.argv)}"
        if stderr.strip():
            message += f", stderr: {stderr.strip()}"
        super().__init__(message)


class PreconditionUnmet(LaptopError):
    """A gated condition is not yet true.

    Predicates may raise this instead of returning False; the gate treats
    both the same way and keeps prompting.
    """


class UnknownPersistedStage(LaptopError):
    """The stage file holds a value outside the known stage set."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"UNKNOWN_STAGE: {value!r}")


class AliasResolutionFailure(LaptopError):
    """The package authority could not resolve a canonical formula name."""

    def __init__(self, identifier: str, detail: Optional[str] = None):
        self.identifier = identifier
        message = f"ALIAS_RESOLUTION_FAILED: {identifier}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class ConfigError(LaptopError):
    """Configuration file is unreadable or invalid."""


class CloneTargetOccupied(LaptopError):
    """Clone destination holds files but is not a git checkout."""

    def __init__(self, directory: str):
        self.directory = directory
        super().__init__(
            f"CLONE_TARGET_OCCUPIED: {directory} is not empty and not a git checkout"
        )


class DownloadFailure(LaptopError):
    """An HTTP resource needed by the run could not be fetched."""

    def __init__(self, url: str, detail: str):
        self.url = url
        super().__init__(f"DOWNLOAD_FAILED: {url}: {detail}")
