"""Unit tests for PreconditionGate."""

import pytest

from laptop.errors import PreconditionUnmet
from laptop.services.gate import Precondition, PreconditionGate


def scripted_predicate(results):
    """Async predicate returning ``results`` in order, counting calls."""
    state = {"calls": 0}

    async def predicate():
        value = results[state["calls"]]
        state["calls"] += 1
        if isinstance(value, Exception):
            raise value
        return value

    predicate.state = state
    return predicate


@pytest.mark.unit
class TestPreconditionGate:
    """Retry-until-true loop with a human prompt."""

    @pytest.mark.asyncio
    async def test_false_twice_then_true(self, prompts):
        """Two retry prompts, three evaluations, then success."""
        # Arrange
        predicate = scripted_predicate([False, False, True])
        gate = PreconditionGate(prompts)
        precondition = Precondition("Checking access", predicate, "Upload your key")

        # Act
        result = await gate.wait_until(precondition)

        # Assert
        assert result is True
        assert predicate.state["calls"] == 3
        assert prompts.seen == ["Upload your key", "Upload your key"]

    @pytest.mark.asyncio
    async def test_true_immediately_never_prompts(self, prompts):
        predicate = scripted_predicate([True])
        gate = PreconditionGate(prompts)

        assert await gate.wait_until(Precondition("Check", predicate, "retry")) is True
        assert prompts.seen == []
        assert predicate.state["calls"] == 1

    @pytest.mark.asyncio
    async def test_precondition_unmet_counts_as_false(self, prompts):
        predicate = scripted_predicate([PreconditionUnmet("no key yet"), True])
        gate = PreconditionGate(prompts)

        assert await gate.wait_until(Precondition("Check", predicate, "retry")) is True
        assert prompts.seen == ["retry"]

    @pytest.mark.asyncio
    async def test_other_exceptions_propagate(self, prompts):
        predicate = scripted_predicate([RuntimeError("broken")])
        gate = PreconditionGate(prompts)

        with pytest.raises(RuntimeError, match="broken"):
            await gate.wait_until(Precondition("Check", predicate, "retry"))

    @pytest.mark.asyncio
    async def test_pause_reads_once(self, prompts):
        gate = PreconditionGate(prompts)

        await gate.pause("Press [Enter] after you're done ...")

        assert prompts.seen == ["Press [Enter] after you're done ..."]
