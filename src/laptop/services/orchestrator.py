"""Resumable stage state machine."""

from typing import Callable, Mapping, Optional
import logging

from laptop.errors import LaptopError
from laptop.models.config import LaptopConfig, LaptopPaths
from laptop.models.status import StageEnum
from laptop.services.gate import PreconditionGate
from laptop.services.git import GitService
from laptop.services.homebrew import HomebrewService
from laptop.services.profile import ShellProfileEditor
from laptop.services.ruby import RubyService
from laptop.services.runner import CommandRunner
from laptop.services.ssh import SshKeyService
from laptop.services.stage_store import FileStageStore, StageStore
from laptop.services.stages import DeployStage, InstallStage, StageHandler
from laptop.utils.console import announce


class Orchestrator:
    """Loads the persisted stage and drives handlers until a terminal one.

    The stage is saved immediately before its handler runs, so a crash
    mid-handler resumes that same handler on the next invocation.
    """

    def __init__(
        self,
        store: StageStore,
        handlers: Mapping[StageEnum, StageHandler],
        runner: CommandRunner,
        paths: LaptopPaths,
    ):
        self.logger = logging.getLogger("laptop.orchestrator")
        self.store = store
        self.handlers = handlers
        self.runner = runner
        self.paths = paths

    def resume_point(self) -> StageEnum:
        stage = self.store.load()
        if stage == StageEnum.START:
            return StageEnum.INSTALL
        return stage

    async def run(self) -> list[StageEnum]:
        """Run from the persisted stage to completion.

        Returns:
            Stages executed in this invocation, in order

        Raises:
            CommandFailure: Propagated from a handler; the stored stage
                still names the stage that failed
        """
        stage: Optional[StageEnum] = self.resume_point()
        self.logger.info(f"Starting at stage {stage.value}")
        executed = []

        while stage is not None:
            handler = self.handlers.get(stage)
            if handler is None:
                raise LaptopError(f"NO_HANDLER: stage {stage.value}")

            self.store.save(stage)
            self.logger.info(f"Entering stage {stage.value}")
            next_stage = await handler.execute()
            executed.append(stage)
            self.logger.info(f"Completed stage {stage.value}")
            stage = next_stage

        await self.run_local_override()
        return executed

    async def run_local_override(self) -> bool:
        """Execute ~/.laptop.local if present."""
        script = self.paths.local_override
        if not script.is_file():
            return False
        announce(f"Running {script} ...")
        await self.runner.check(["/bin/bash", str(script)])
        return True


def build_orchestrator(
    paths: LaptopPaths,
    config: LaptopConfig,
    runner: Optional[CommandRunner] = None,
    store: Optional[StageStore] = None,
    prompt: Optional[Callable[[str], str]] = None,
) -> Orchestrator:
    """Wire services and the stage table for one machine."""
    runner = runner or CommandRunner()
    store = store or FileStageStore(paths.stage_file)
    profile = ShellProfileEditor(paths)

    handlers: dict[StageEnum, StageHandler] = {
        StageEnum.INSTALL: InstallStage(
            runner=runner,
            paths=paths,
            config=config,
            homebrew=HomebrewService(runner, paths, config, profile),
            ruby=RubyService(runner, config.ruby),
            profile=profile,
        ),
        StageEnum.DEPLOY: DeployStage(
            runner=runner,
            paths=paths,
            config=config,
            gate=PreconditionGate(prompt),
            git=GitService(runner),
            ssh=SshKeyService(runner, paths.expand(config.ssh.key_path)),
        ),
    }
    return Orchestrator(store, handlers, runner, paths)
