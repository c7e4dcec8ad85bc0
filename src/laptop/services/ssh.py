"""SSH key presence, generation and clipboard copy."""

import shutil
from pathlib import Path
import logging

from laptop.services.runner import CommandRunner
from laptop.utils.console import announce


class SshKeyService:
    """Makes sure the user has a public key ready to upload."""

    def __init__(self, runner: CommandRunner, public_key: Path):
        """Initialize SSH key service.

        Args:
            runner: Command runner
            public_key: Public key path (private key is the same path minus .pub)
        """
        self.logger = logging.getLogger("laptop.ssh")
        self.runner = runner
        self.public_key = public_key
        self.private_key = public_key.with_suffix("")

    def has_key(self) -> bool:
        return self.public_key.is_file()

    async def ensure_key(self) -> bool:
        """Generate an RSA key pair if the public key is missing.

        ssh-keygen runs attached to the terminal so the user can pick a
        passphrase.

        Returns:
            True if a key was generated
        """
        announce("Checking for SSH key, generating one if it doesn't exist ...")
        if self.has_key():
            self.logger.info(f"Found SSH key {self.public_key}")
            return False

        self.private_key.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        await self.runner.check(
            ["ssh-keygen", "-t", "rsa", "-f", str(self.private_key)]
        )
        return True

    async def copy_to_clipboard(self) -> bool:
        """Copy the public key with pbcopy when available."""
        if not self.has_key():
            return False
        if not shutil.which("pbcopy"):
            self.logger.warning("pbcopy not found, public key not copied")
            return False

        announce("Copying public key to clipboard ...")
        key = self.public_key.read_text(encoding="utf-8")
        await self.runner.check(["pbcopy"], input_text=key)
        return True
