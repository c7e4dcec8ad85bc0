"""Provisioning plan and filesystem layout.

The plan is a JSON document validated by :class:`LaptopConfig`. When no
file exists the built-in defaults reproduce the classic laptop script:
databases, editors, rbenv/ruby-build and a current Ruby with bundler.

Layout (relative to the user's home directory):
    ~/.laptop/
    ├── stage              # Last stage begun (start/install/deploy)
    ├── config.json        # Optional plan override
    └── logs/laptop.log    # Rotating log
    ~/.bin/                # Added to PATH
    ~/.zshrc(.local)       # Shell profile
    ~/.laptop.local        # Machine-specific script, run last
"""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from laptop.errors import ConfigError
from laptop.models.package import PackageSpec, ProfileLine


DEFAULT_FORMULAE = [
    PackageSpec(identifier="git"),
    PackageSpec(identifier="postgresql"),
    PackageSpec(identifier="redis"),
    PackageSpec(identifier="mysql"),
    PackageSpec(identifier="the_silver_searcher"),
    PackageSpec(identifier="vim"),
    PackageSpec(identifier="ctags"),
    PackageSpec(identifier="tmux"),
    PackageSpec(identifier="reattach-to-user-namespace"),
    PackageSpec(identifier="imagemagick"),
    PackageSpec(identifier="hub"),
    PackageSpec(identifier="node"),
    PackageSpec(identifier="geos"),
    PackageSpec(identifier="rbenv"),
    PackageSpec(identifier="ruby-build"),
    PackageSpec(identifier="openssl"),
    PackageSpec(identifier="libyaml"),
    PackageSpec(identifier="rcm"),
]


class RubyConfig(BaseModel):
    """Ruby runtime managed through rbenv."""

    version: Optional[str] = Field(
        None, description="Pinned Ruby version; looked up over HTTP when unset"
    )
    version_url: str = Field(
        "http://ruby.thoughtbot.com/latest",
        pattern=r"^https?://.+",
        description="Endpoint returning the latest stable Ruby version as text",
    )
    gems: list[str] = Field(
        default_factory=lambda: ["bundler"], description="Gems to install or update"
    )


class ProjectConfig(BaseModel):
    """Application repository provisioned by the deploy stage."""

    repo_url: str = Field(..., min_length=1, description="Clone URL (usually SSH)")
    directory: str = Field(..., min_length=1, description="Checkout directory")
    setup_commands: list[list[str]] = Field(
        default_factory=list,
        description="Commands run inside the checkout, each as an argument list",
    )

    @field_validator("setup_commands")
    @classmethod
    def non_empty_commands(cls, v: list[list[str]]) -> list[list[str]]:
        """Every setup command needs at least a program name."""
        for argv in v:
            if not argv or not argv[0]:
                raise ValueError("Setup commands must not be empty")
        return v


class SshConfig(BaseModel):
    """SSH key used to reach the repository host."""

    key_path: str = Field(
        "~/.ssh/id_rsa.pub", pattern=r"\.pub$", description="Public key path"
    )
    upload_url: str = Field(
        "https://help.github.com/articles/generating-ssh-keys/"
        "#step-3-add-your-ssh-key-to-your-account",
        description="Where the user uploads the public key",
    )


class LaptopConfig(BaseModel):
    """Root provisioning plan."""

    homebrew_prefix: str = Field("/usr/local", pattern=r"^/.*$")
    homebrew_install_url: str = Field(
        "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh",
        pattern=r"^https?://.+",
    )
    taps: list[str] = Field(default_factory=lambda: ["thoughtbot/formulae"])
    formulae: list[PackageSpec] = Field(
        default_factory=lambda: [f.model_copy() for f in DEFAULT_FORMULAE]
    )
    services: list[str] = Field(
        default_factory=lambda: ["postgresql", "redis"],
        description="Formulae kept running through launchd",
    )
    relinks: list[str] = Field(
        default_factory=lambda: ["openssl"],
        description="Formulae force-linked after install",
    )
    owned_directories: list[str] = Field(
        default_factory=list,
        description="Directories created with sudo and chowned to the user",
    )
    profile_lines: list[ProfileLine] = Field(
        default_factory=lambda: [
            ProfileLine(text='eval "$(rbenv init - zsh --no-rehash)"', skip_new_line=True)
        ]
    )
    ruby: RubyConfig = Field(default_factory=RubyConfig)
    ssh: SshConfig = Field(default_factory=SshConfig)
    account_signup_url: str = Field("https://github.com/join")
    project: Optional[ProjectConfig] = None

    @field_validator("formulae")
    @classmethod
    def unique_formulae(cls, v: list[PackageSpec]) -> list[PackageSpec]:
        """Ensure each formula is listed once."""
        names = [f.identifier for f in v]
        if len(names) != len(set(names)):
            raise ValueError("Formula identifiers must be unique")
        return v


class LaptopPaths:
    """Fixed paths derived from a single home directory."""

    def __init__(self, home: Union[str, Path, None] = None):
        self.home = Path(home) if home is not None else Path.home()
        self.state_dir = self.home / ".laptop"
        self.stage_file = self.state_dir / "stage"
        self.config_file = self.state_dir / "config.json"
        self.log_file = self.state_dir / "logs" / "laptop.log"
        self.bin_dir = self.home / ".bin"
        self.zshrc = self.home / ".zshrc"
        self.zshrc_local = self.home / ".zshrc.local"
        self.local_override = self.home / ".laptop.local"
        self.launch_agents = self.home / "Library" / "LaunchAgents"

    def expand(self, value: str) -> Path:
        """Expand a leading ``~`` against this home directory."""
        if value == "~":
            return self.home
        if value.startswith("~/"):
            return self.home / value[2:]
        return Path(value)


def load_config(path: Optional[Path]) -> LaptopConfig:
    """Load the provisioning plan.

    Args:
        path: JSON plan file; defaults are used if None or missing

    Returns:
        Validated LaptopConfig

    Raises:
        ConfigError: If the file cannot be read or fails validation
    """
    logger = logging.getLogger("laptop.config")

    if path is None or not path.exists():
        logger.info("No config file found, using built-in plan")
        return LaptopConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        config = LaptopConfig(**data)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"CONFIG_UNREADABLE: {path}: {e}") from e
    except (ValidationError, TypeError) as e:
        raise ConfigError(f"CONFIG_INVALID: {path}: {e}") from e

    logger.info(
        f"Loaded config from {path}: formulae={len(config.formulae)}, "
        f"project={'yes' if config.project else 'no'}"
    )
    return config
