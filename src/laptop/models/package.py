"""Package and profile line models used by the install stage."""

import shlex
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class PackageSpec(BaseModel):
    """A formula to install or upgrade.

    Options are kept as the user wrote them (e.g. "--with-libstemmer")
    and split into separate arguments, never passed through a shell.
    """

    identifier: str = Field(
        ..., min_length=1, description="Requested formula name (may be an alias)"
    )
    options: Optional[str] = Field(
        None, description="Extra install/upgrade options"
    )

    @field_validator("identifier")
    @classmethod
    def no_whitespace(cls, v: str) -> str:
        """Reject identifiers that would split into several arguments."""
        v = v.strip()
        if not v or any(ch.isspace() for ch in v):
            raise ValueError(f"Invalid formula identifier: {v!r}")
        return v

    def option_args(self) -> list[str]:
        """Return options as an argument list."""
        if not self.options:
            return []
        return shlex.split(self.options)


class ProfileLine(BaseModel):
    """A line appended to the shell profile if not already present."""

    text: str = Field(..., min_length=1, description="Literal line text")
    skip_new_line: bool = Field(
        False, description="Append without a leading blank line"
    )
