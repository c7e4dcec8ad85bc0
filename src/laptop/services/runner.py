"""External command execution."""

import asyncio
import os
import shlex
from pathlib import Path
from typing import Optional, Sequence, Union
import logging

from laptop.errors import CommandFailure
from laptop.models.command import CommandResult

# Conventional shell status for "command not found".
COMMAND_NOT_FOUND = 127


def format_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


class CommandRunner:
    """Runs external commands from argument lists, never through a shell.

    Every invocation blocks until the child exits; there is no timeout.
    """

    def __init__(self):
        """Initialize command runner."""
        self.logger = logging.getLogger("laptop.runner")

    async def run(
        self,
        argv: Sequence[str],
        capture_output: bool = False,
        cwd: Union[str, Path, None] = None,
        input_text: Optional[str] = None,
    ) -> CommandResult:
        """Run a command and report its exit status.

        Args:
            argv: Program and arguments
            capture_output: Capture stdout/stderr instead of inheriting the
                terminal (interactive tools need the terminal)
            cwd: Working directory
            input_text: Text fed to the child's stdin

        Returns:
            CommandResult; a nonzero exit is reported, not raised.
            A missing program yields returncode 127 with the error in stderr.
        """
        argv_list = [str(a) for a in argv]
        self.logger.info(f"CMD {format_argv(argv_list)}")

        pipe = asyncio.subprocess.PIPE if capture_output else None
        try:
            process = await asyncio.create_subprocess_exec(
                *argv_list,
                stdin=asyncio.subprocess.PIPE if input_text is not None else None,
                stdout=pipe,
                stderr=pipe,
                cwd=str(cwd) if cwd is not None else None,
                env=dict(os.environ),
            )
        except (FileNotFoundError, PermissionError) as e:
            self.logger.error(f"Cannot execute {argv_list[0]}: {e}")
            return CommandResult(
                argv=argv_list, returncode=COMMAND_NOT_FOUND, stderr=str(e)
            )

        stdout, stderr = await process.communicate(
            input_text.encode() if input_text is not None else None
        )
        result = CommandResult(
            argv=argv_list,
            returncode=process.returncode,
            stdout=stdout.decode(errors="replace") if stdout else "",
            stderr=stderr.decode(errors="replace") if stderr else "",
        )

        if result.stdout:
            self.logger.debug(f"STDOUT {result.stdout.strip()}")
        if result.stderr:
            self.logger.debug(f"STDERR {result.stderr.strip()}")
        if not result.ok:
            self.logger.warning(
                f"Command exited {result.returncode}: {format_argv(argv_list)}"
            )
        return result

    async def check(
        self,
        argv: Sequence[str],
        capture_output: bool = False,
        cwd: Union[str, Path, None] = None,
        input_text: Optional[str] = None,
    ) -> CommandResult:
        """Run a command that must succeed.

        Raises:
            CommandFailure: If the command exits nonzero or cannot start
        """
        result = await self.run(
            argv, capture_output=capture_output, cwd=cwd, input_text=input_text
        )
        if not result.ok:
            raise CommandFailure(result.argv, result.returncode, result.stderr)
        return result
