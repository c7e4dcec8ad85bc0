"""Command execution result model."""

from pydantic import BaseModel, Field


class CommandResult(BaseModel):
    """Outcome of one external command.

    stdout/stderr are empty unless output was captured.
    """

    argv: list[str] = Field(..., description="Executed argument vector")
    returncode: int = Field(..., description="Process exit status")
    stdout: str = Field("", description="Captured standard output")
    stderr: str = Field("", description="Captured standard error")

    @property
    def ok(self) -> bool:
        return self.returncode == 0
