"""Homebrew as the package authority: idempotent install and service control."""

import os
import shutil
from pathlib import Path
from typing import Optional
import logging

from laptop.errors import AliasResolutionFailure
from laptop.models.command import CommandResult
from laptop.models.config import LaptopConfig, LaptopPaths
from laptop.models.package import PackageSpec
from laptop.models.status import InstallOutcome
from laptop.services.profile import ShellProfileEditor
from laptop.services.runner import CommandRunner
from laptop.utils.console import announce
from laptop.utils.http import fetch_text


class HomebrewService:
    """Install-or-upgrade formulae and keep launchd services current.

    Installed/outdated checks always use the canonical name reported by
    ``brew info``; a requested alias (e.g. "postgres") is listed under a
    different name (e.g. "postgresql") and would otherwise look missing.
    """

    def __init__(
        self,
        runner: CommandRunner,
        paths: LaptopPaths,
        config: Optional[LaptopConfig] = None,
        profile: Optional[ShellProfileEditor] = None,
    ):
        self.logger = logging.getLogger("laptop.homebrew")
        self.runner = runner
        self.paths = paths
        self.config = config or LaptopConfig()
        self.profile = profile or ShellProfileEditor(paths)
        self.prefix = Path(self.config.homebrew_prefix)
        # Result of the most recent install or upgrade command.
        self.last_result: Optional[CommandResult] = None

    async def expand_alias(self, identifier: str) -> str:
        """Resolve a requested formula name to its canonical name.

        The canonical name is the first token of the first line of
        ``brew info``, with colons removed.

        Raises:
            AliasResolutionFailure: If brew cannot describe the formula
        """
        result = await self.runner.run(["brew", "info", identifier], capture_output=True)
        if not result.ok:
            raise AliasResolutionFailure(identifier, f"brew info exited {result.returncode}")

        lines = result.stdout.splitlines()
        tokens = lines[0].replace(":", "").split() if lines else []
        # Newer brew releases prefix the heading with "==>".
        if tokens and tokens[0] == "==>":
            tokens = tokens[1:]
        if not tokens:
            raise AliasResolutionFailure(identifier, "empty brew info output")

        canonical = tokens[0]
        if canonical != identifier:
            self.logger.debug(f"Resolved {identifier} -> {canonical}")
        return canonical

    async def is_installed(self, canonical: str) -> bool:
        """Check the installed-formula list for a canonical name.

        Raises:
            CommandFailure: If `brew list` itself fails
        """
        result = await self.runner.check(["brew", "list", "-1"], capture_output=True)
        return canonical in (line.strip() for line in result.stdout.splitlines())

    async def is_outdated(self, canonical: str) -> bool:
        # brew exits nonzero when the named formula is outdated.
        result = await self.runner.run(
            ["brew", "outdated", "--quiet", canonical], capture_output=True
        )
        return not result.ok

    async def install_or_upgrade(self, spec: PackageSpec) -> InstallOutcome:
        """Install a missing formula, upgrade an outdated one, else no-op.

        Args:
            spec: Formula identifier and options

        Returns:
            InstallOutcome; FAILED if the install/upgrade command exited nonzero

        Raises:
            AliasResolutionFailure: If the canonical name cannot be resolved
            CommandFailure: If the installed-formula list cannot be read
        """
        canonical = await self.expand_alias(spec.identifier)
        self.last_result = None

        if not await self.is_installed(canonical):
            announce(f"Installing {spec.identifier} ...")
            result = await self.runner.run(
                ["brew", "install", spec.identifier, *spec.option_args()]
            )
            self.last_result = result
            outcome = InstallOutcome.INSTALLED if result.ok else InstallOutcome.FAILED
        elif await self.is_outdated(canonical):
            announce(f"Upgrading {spec.identifier} ...")
            result = await self.runner.run(
                ["brew", "upgrade", spec.identifier, *spec.option_args()]
            )
            self.last_result = result
            outcome = InstallOutcome.UPGRADED if result.ok else InstallOutcome.FAILED
        else:
            announce(f"Already using the latest version of {spec.identifier}. Skipping ...")
            outcome = InstallOutcome.ALREADY_CURRENT

        self.logger.info(f"{spec.identifier}: {outcome.value}")
        return outcome

    def _ensure_symlink(self, link: Path, target: Path) -> None:
        if link.is_symlink() and os.readlink(link) == str(target):
            return
        temp_link = link.parent / f".{link.name}.tmp.{os.getpid()}"
        temp_link.unlink(missing_ok=True)
        temp_link.symlink_to(target)
        temp_link.replace(link)
        self.logger.info(f"Linked {link} -> {target}")

    async def restart_managed_service(self, name: str) -> None:
        """Ensure a formula's launchd agent is loaded with its latest plist.

        Unloads first only when the agent is currently loaded.

        Raises:
            CommandFailure: If launchctl fails
        """
        canonical = await self.expand_alias(name)
        domain = f"homebrew.mxcl.{canonical}"
        plist = f"{domain}.plist"

        announce(f"Restarting {name} ...")
        self.paths.launch_agents.mkdir(parents=True, exist_ok=True)
        agent = self.paths.launch_agents / plist
        self._ensure_symlink(agent, self.prefix / "opt" / canonical / plist)

        listed = await self.runner.check(["launchctl", "list"], capture_output=True)
        if domain in listed.stdout:
            await self.runner.check(["launchctl", "unload", str(agent)], capture_output=True)
        await self.runner.check(["launchctl", "load", str(agent)], capture_output=True)

    async def tap(self, name: str) -> None:
        await self.runner.check(["brew", "tap", name], capture_output=True)

    async def update(self) -> None:
        announce("Updating Homebrew formulas ...")
        await self.runner.check(["brew", "update"])

    async def relink(self, name: str) -> None:
        """Force-link a keg-only formula (e.g. openssl)."""
        await self.runner.check(["brew", "unlink", name])
        await self.runner.check(["brew", "link", name, "--force"])

    async def ensure_homebrew(self) -> bool:
        """Install Homebrew itself when ``brew`` is not on PATH.

        Returns:
            True if Homebrew was installed by this call
        """
        if shutil.which("brew"):
            announce("Homebrew already installed. Skipping ...")
            return False

        announce("Installing Homebrew ...")
        script = await fetch_text(self.config.homebrew_install_url)
        await self.runner.check(["/bin/bash", "-c", script])

        bin_dir = self.prefix / "bin"
        self.profile.append_if_absent("# recommended by brew doctor")
        self.profile.append_if_absent(f'export PATH="{bin_dir}:$PATH"', skip_new_line=True)
        os.environ["PATH"] = f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}"
        return True
