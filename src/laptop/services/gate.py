"""Human-in-the-loop precondition gate."""

import asyncio
from typing import Awaitable, Callable, Optional
import logging

from laptop.errors import PreconditionUnmet
from laptop.utils.console import announce


class Precondition:
    """An externally-verifiable condition with its retry prompt.

    Args:
        description: What is being checked, narrated before the first check
        predicate: Async zero-argument callable returning True once satisfied
        retry_prompt: Shown each time the predicate is false
    """

    def __init__(
        self,
        description: str,
        predicate: Callable[[], Awaitable[bool]],
        retry_prompt: str,
    ):
        self.description = description
        self.predicate = predicate
        self.retry_prompt = retry_prompt


class PreconditionGate:
    """Blocks until a precondition holds, re-prompting a human each time.

    There is deliberately no timeout or backoff: the condition usually
    depends on something only a person can do (uploading a key, being
    granted access) and its duration is unknowable.
    """

    def __init__(self, prompt: Optional[Callable[[str], str]] = None):
        """Initialize gate.

        Args:
            prompt: Blocking reader used for acknowledgements (defaults to input)
        """
        self.logger = logging.getLogger("laptop.gate")
        self._prompt = prompt or input

    async def _acknowledge(self, message: str) -> None:
        # Content of the read is discarded.
        await asyncio.to_thread(self._prompt, message)

    async def _evaluate(self, precondition: Precondition) -> bool:
        try:
            return bool(await precondition.predicate())
        except PreconditionUnmet as e:
            self.logger.info(f"Precondition unmet: {e}")
            return False

    async def wait_until(self, precondition: Precondition) -> bool:
        """Evaluate the predicate until it is true.

        Args:
            precondition: Condition to wait for

        Returns:
            True, always; the gate only returns once the condition holds
        """
        announce(precondition.description)
        attempts = 0
        while True:
            attempts += 1
            if await self._evaluate(precondition):
                self.logger.info(
                    f"Precondition satisfied after {attempts} check(s): "
                    f"{precondition.description}"
                )
                return True
            self.logger.info(f"Precondition not met (check {attempts}), prompting")
            await self._acknowledge(precondition.retry_prompt)

    async def pause(self, message: str) -> None:
        """Block once for a human acknowledgement."""
        await self._acknowledge(message)
