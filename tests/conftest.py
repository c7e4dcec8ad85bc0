"""Global pytest fixtures and configuration."""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from laptop.models.command import CommandResult  # noqa: E402
from laptop.models.config import LaptopPaths  # noqa: E402
from laptop.services.runner import CommandRunner  # noqa: E402
from laptop.services.stage_store import MemoryStageStore  # noqa: E402


class FakeRunner(CommandRunner):
    """CommandRunner that records calls and replays scripted results.

    ``responses`` maps an argv tuple (or a prefix of one) to either
    ``(returncode, stdout)`` or a list of those consumed in order; the
    last entry of a list repeats. Unscripted commands succeed silently.
    """

    def __init__(self, responses=None):
        super().__init__()
        self.responses = dict(responses or {})
        self.calls = []
        self.cwds = []
        self.inputs = []

    def _lookup(self, argv):
        key = tuple(argv)
        while key:
            if key in self.responses:
                scripted = self.responses[key]
                if isinstance(scripted, list):
                    return scripted.pop(0) if len(scripted) > 1 else scripted[0]
                return scripted
            key = key[:-1]
        return (0, "")

    async def run(self, argv, capture_output=False, cwd=None, input_text=None):
        argv = [str(a) for a in argv]
        self.calls.append(argv)
        self.cwds.append(cwd)
        self.inputs.append(input_text)
        returncode, stdout = self._lookup(argv)
        return CommandResult(argv=argv, returncode=returncode, stdout=stdout)

    def invoked(self, *prefix):
        """Calls whose argv starts with ``prefix``."""
        return [c for c in self.calls if tuple(c[: len(prefix)]) == prefix]


@pytest.fixture
def home(tmp_path):
    """Isolated home directory."""
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def paths(home):
    return LaptopPaths(home)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def memory_store():
    return MemoryStageStore()


@pytest.fixture
def prompts():
    """Recorder standing in for the blocking human read."""
    seen = []

    def prompt(message):
        seen.append(message)
        return ""

    prompt.seen = seen
    return prompt
