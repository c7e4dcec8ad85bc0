"""Stage handlers: the install and deploy halves of a provisioning run.

Each handler is re-runnable from its beginning; every step it performs is
idempotent, so a run interrupted halfway through a stage simply repeats
that stage.
"""

import getpass
import logging
import os
import shutil
from typing import Optional, Protocol

from laptop.errors import CommandFailure
from laptop.models.config import LaptopConfig, LaptopPaths
from laptop.models.status import InstallOutcome, StageEnum
from laptop.services.gate import Precondition, PreconditionGate
from laptop.services.git import GitService
from laptop.services.homebrew import HomebrewService
from laptop.services.profile import ShellProfileEditor
from laptop.services.ruby import RubyService
from laptop.services.runner import CommandRunner, format_argv
from laptop.services.ssh import SshKeyService
from laptop.utils.console import announce


class StageHandler(Protocol):
    """A unit of work bound to one stage."""

    stage: StageEnum

    async def execute(self) -> Optional[StageEnum]:
        """Run the stage; return the next stage, or None if terminal."""
        ...


class InstallStage:
    """Shell setup, Homebrew formulae, launchd services and Ruby."""

    stage = StageEnum.INSTALL

    def __init__(
        self,
        runner: CommandRunner,
        paths: LaptopPaths,
        config: LaptopConfig,
        homebrew: HomebrewService,
        ruby: RubyService,
        profile: ShellProfileEditor,
    ):
        self.logger = logging.getLogger("laptop.stages.install")
        self.runner = runner
        self.paths = paths
        self.config = config
        self.homebrew = homebrew
        self.ruby = ruby
        self.profile = profile

    async def prepare_shell(self) -> None:
        self.paths.bin_dir.mkdir(parents=True, exist_ok=True)
        self.profile.ensure_profile()
        self.profile.append_if_absent('export PATH="$HOME/.bin:$PATH"')

        if os.environ.get("SHELL", "").endswith("/zsh"):
            return
        zsh = shutil.which("zsh")
        if zsh is None:
            self.logger.warning("zsh not found, login shell left unchanged")
            return
        announce("Changing your shell to zsh ...")
        await self.runner.check(["chsh", "-s", zsh])

    async def install_formulae(self) -> dict[str, InstallOutcome]:
        """Install or upgrade every configured formula.

        Raises:
            CommandFailure: On the first formula whose install/upgrade fails
        """
        outcomes = {}
        for spec in self.config.formulae:
            outcome = await self.homebrew.install_or_upgrade(spec)
            outcomes[spec.identifier] = outcome
            if outcome == InstallOutcome.FAILED:
                result = self.homebrew.last_result
                raise CommandFailure(result.argv, result.returncode, result.stderr)
        return outcomes

    async def create_owned_directories(self) -> None:
        user = getpass.getuser()
        for directory in self.config.owned_directories:
            announce(f"Creating {directory} ...")
            await self.runner.check(["sudo", "mkdir", "-p", directory])
            await self.runner.check(["sudo", "chown", "-R", user, directory])

    async def execute(self) -> Optional[StageEnum]:
        await self.prepare_shell()

        await self.homebrew.ensure_homebrew()
        await self.homebrew.update()
        for tap in self.config.taps:
            await self.homebrew.tap(tap)

        outcomes = await self.install_formulae()
        self.logger.info(
            "Formulae: "
            + ", ".join(f"{name}={outcome.value}" for name, outcome in outcomes.items())
        )

        for service in self.config.services:
            await self.homebrew.restart_managed_service(service)
        for name in self.config.relinks:
            await self.homebrew.relink(name)
        await self.create_owned_directories()

        for line in self.config.profile_lines:
            self.profile.append_line(line)

        await self.ruby.provision()
        return StageEnum.DEPLOY


class DeployStage:
    """SSH key, repository access gate, clone and project setup."""

    stage = StageEnum.DEPLOY

    def __init__(
        self,
        runner: CommandRunner,
        paths: LaptopPaths,
        config: LaptopConfig,
        gate: PreconditionGate,
        git: GitService,
        ssh: SshKeyService,
    ):
        self.logger = logging.getLogger("laptop.stages.deploy")
        self.runner = runner
        self.paths = paths
        self.config = config
        self.gate = gate
        self.git = git
        self.ssh = ssh

    def repository_access(self, repo_url: str) -> Precondition:
        async def reachable() -> bool:
            return await self.git.can_access(repo_url)

        return Precondition(
            description=f"Checking access to {repo_url} ...",
            predicate=reachable,
            retry_prompt=(
                f"Cannot reach {repo_url}. Add {self.ssh.public_key} to your "
                f"account ({self.config.ssh.upload_url}), then press [Enter] to retry ..."
            ),
        )

    async def execute(self) -> Optional[StageEnum]:
        announce(f"Create a GitHub account at {self.config.account_signup_url}")
        await self.gate.pause("Press [Enter] after you're done ...")

        await self.ssh.ensure_key()
        await self.ssh.copy_to_clipboard()

        project = self.config.project
        if project is None:
            self.logger.info("No project configured, deploy stage done")
            return None

        await self.gate.wait_until(self.repository_access(project.repo_url))

        directory = self.paths.expand(project.directory)
        await self.git.clone(project.repo_url, directory)

        for argv in project.setup_commands:
            announce(f"Running {format_argv(argv)} ...")
            await self.runner.check(argv, cwd=directory)
        return None
