"""Repository access checks and cloning."""

from pathlib import Path
import logging

from laptop.errors import CloneTargetOccupied
from laptop.services.runner import CommandRunner
from laptop.utils.console import announce


class GitService:
    """Thin wrapper around git for the deploy stage."""

    def __init__(self, runner: CommandRunner):
        self.logger = logging.getLogger("laptop.git")
        self.runner = runner

    async def can_access(self, repo_url: str) -> bool:
        """True if the remote answers ``git ls-remote`` with our credentials."""
        result = await self.runner.run(
            ["git", "ls-remote", "--heads", repo_url], capture_output=True
        )
        return result.ok

    async def clone(self, repo_url: str, directory: Path) -> bool:
        """Clone into ``directory`` unless it is already a checkout.

        A re-run after a completed clone is a no-op. A directory that holds
        other files is left alone and reported.

        Returns:
            True if a clone was performed

        Raises:
            CloneTargetOccupied: If the directory is populated but not a checkout
            CommandFailure: If git clone fails
        """
        if (directory / ".git").exists():
            announce(f"{directory} already cloned. Skipping ...")
            return False
        if directory.exists() and any(directory.iterdir()):
            raise CloneTargetOccupied(str(directory))

        announce(f"Cloning {repo_url} into {directory} ...")
        directory.parent.mkdir(parents=True, exist_ok=True)
        await self.runner.check(["git", "clone", repo_url, str(directory)])
        return True
