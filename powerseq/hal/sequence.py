"""Hardware-agnostic power sequencing interface.

Every lifecycle operation comes with a `pre_` and a `post_` hook generated by
`@power_sequence`. Callers are expected to run `pre_x`, then `x`, then
`post_x`; nothing here enforces that order.
"""
from __future__ import annotations

import abc
from typing import ClassVar

from powerseq.hal.markers import power_sequence, power_state


OPERATIONS: tuple[str, ...] = (
    "power_on",
    "power_off",
    "idle",
    "wake_up",
    "suspend",
    "resume",
    "hibernate",
    "activate",
)


@power_sequence
class PowerSequence(abc.ABC):
    """A representation of a device's power sequence.

    Operations return None on success and raise on failure. Raised errors
    should provide `kind()` so generic code can classify them with
    `powerseq.hal.errors.error_kind`.
    """

    error_type: ClassVar[type[BaseException]] = Exception

    @power_state
    @abc.abstractmethod
    async def power_on(self) -> None:
        """Power the device on."""

    @power_state
    @abc.abstractmethod
    async def power_off(self) -> None:
        """Power the device off. Usually a direct reverse of `power_on`."""

    @power_state
    async def idle(self) -> None:
        """Put the device in idle state (Modern Standby on Windows)."""
        return None

    @power_state
    async def wake_up(self) -> None:
        """The reverse operation of `idle`."""
        return None

    @power_state
    async def suspend(self) -> None:
        """Suspend to RAM."""
        return None

    @power_state
    async def resume(self) -> None:
        """Wake from suspend to RAM."""
        return None

    @power_state
    async def hibernate(self) -> None:
        """Suspend to disk."""
        await self.power_off()

    @power_state
    async def activate(self) -> None:
        """Wake from suspend to disk. In many cases the same as `power_on`."""
        await self.power_on()
