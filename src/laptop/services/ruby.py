"""Ruby runtime management through rbenv, gem and bundler."""

import os
from typing import Optional
import logging

from laptop.errors import DownloadFailure
from laptop.models.config import RubyConfig
from laptop.services.runner import CommandRunner
from laptop.utils.console import announce
from laptop.utils.http import fetch_text


class RubyService:
    """Installs and selects a Ruby version, then its gems."""

    def __init__(self, runner: CommandRunner, config: Optional[RubyConfig] = None):
        self.logger = logging.getLogger("laptop.ruby")
        self.runner = runner
        self.config = config or RubyConfig()

    async def resolve_version(self) -> str:
        """Return the pinned version, or the latest stable one from version_url.

        Raises:
            DownloadFailure: If the lookup fails or returns nothing
        """
        if self.config.version:
            return self.config.version

        version = (await fetch_text(self.config.version_url)).strip()
        if not version or any(ch.isspace() for ch in version):
            raise DownloadFailure(self.config.version_url, "unexpected version response")
        self.logger.info(f"Latest Ruby version: {version}")
        return version

    async def is_version_installed(self, version: str) -> bool:
        result = await self.runner.check(["rbenv", "versions"], capture_output=True)
        return version in result.stdout

    async def ensure_version(self, version: str) -> None:
        """Install ``version`` if missing and make it the global default.

        Also pins RBENV_VERSION for this process so later gem/bundle calls
        run against it.
        """
        announce(f"Installing Ruby {version} ...")
        if await self.is_version_installed(version):
            self.logger.info(f"Ruby {version} already installed")
        else:
            await self.runner.check(["rbenv", "install", "-s", version])

        await self.runner.check(["rbenv", "global", version])
        os.environ["RBENV_VERSION"] = version

    async def gem_install_or_update(self, name: str) -> None:
        result = await self.runner.run(
            ["gem", "list", name, "--installed"], capture_output=True
        )
        if result.ok:
            announce(f"Updating {name} ...")
            await self.runner.check(["gem", "update", name])
        else:
            announce(f"Installing {name} ...")
            await self.runner.check(["gem", "install", name])
            await self.runner.check(["rbenv", "rehash"])

    async def configure_bundler(self, cpu_count: Optional[int] = None) -> int:
        """Set bundler's parallel job count to one less than the CPU count.

        Returns:
            Configured job count
        """
        announce("Configuring Bundler ...")
        cores = cpu_count or os.cpu_count() or 1
        jobs = max(cores - 1, 1)
        await self.runner.check(["bundle", "config", "--global", "jobs", str(jobs)])
        return jobs

    async def provision(self) -> str:
        """Install Ruby, update RubyGems, install gems and tune bundler.

        Returns:
            The Ruby version now selected
        """
        version = await self.resolve_version()
        await self.ensure_version(version)
        await self.runner.check(["gem", "update", "--system"])
        for gem in self.config.gems:
            await self.gem_install_or_update(gem)
        if "bundler" in self.config.gems:
            await self.configure_bundler()
        return version
