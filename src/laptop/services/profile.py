"""Append-only editing of the zsh startup file."""

import os
from pathlib import Path
import logging

from laptop.models.config import LaptopPaths
from laptop.models.package import ProfileLine


class ShellProfileEditor:
    """Appends configuration lines to the shell profile unless present.

    Presence is a literal substring check, so two spellings of the same
    setting are treated as different lines. Existing content is never
    rewritten.
    """

    def __init__(self, paths: LaptopPaths):
        self.logger = logging.getLogger("laptop.profile")
        self.paths = paths

    def ensure_profile(self) -> Path:
        """Create the primary profile if it does not exist."""
        if not self.paths.zshrc.exists():
            self.paths.zshrc.parent.mkdir(parents=True, exist_ok=True)
            self.paths.zshrc.touch()
            self.logger.info(f"Created {self.paths.zshrc}")
        return self.paths.zshrc

    def target(self) -> Path:
        """Return the local override profile if writable, else the primary."""
        local = self.paths.zshrc_local
        if local.is_file() and os.access(local, os.W_OK):
            return local
        return self.paths.zshrc

    def append_if_absent(self, text: str, skip_new_line: bool = False) -> bool:
        """Append ``text`` to the profile if it is not already there.

        Args:
            text: Literal line to add
            skip_new_line: Do not insert a blank line before the text

        Returns:
            True if the file was changed
        """
        path = self.target()
        try:
            existing = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            existing = ""

        if text in existing:
            self.logger.debug(f"Already present in {path.name}: {text}")
            return False

        chunk = f"{text}\n" if skip_new_line else f"\n{text}\n"
        if existing and not existing.endswith("\n"):
            chunk = "\n" + chunk

        with open(path, "a", encoding="utf-8") as f:
            f.write(chunk)
        self.logger.info(f"Appended to {path.name}: {text}")
        return True

    def append_line(self, line: ProfileLine) -> bool:
        return self.append_if_absent(line.text, skip_new_line=line.skip_new_line)
