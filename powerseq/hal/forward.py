from __future__ import annotations

from typing import ClassVar

from powerseq.hal.markers import power_sequence, power_state
from powerseq.hal.sequence import PowerSequence


@power_sequence
class ForwardingPowerSequence(PowerSequence):
    """Forward every operation and hook to a borrowed power sequence.

    The hooks are generated from the forwarding bodies below, so
    `pre_power_on` awaits `inner.pre_power_on()` rather than
    `inner.power_on()`.
    """

    error_type: ClassVar[type[BaseException]] = Exception

    def __init__(self, inner: PowerSequence) -> None:
        self.inner = inner
        # Report the wrapped implementation's error type.
        self.error_type = inner.error_type  # type: ignore[misc]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.inner!r})"

    @power_state
    async def power_on(self) -> None:
        return await self.inner.power_on()

    @power_state
    async def power_off(self) -> None:
        return await self.inner.power_off()

    @power_state
    async def idle(self) -> None:
        return await self.inner.idle()

    @power_state
    async def wake_up(self) -> None:
        return await self.inner.wake_up()

    @power_state
    async def suspend(self) -> None:
        return await self.inner.suspend()

    @power_state
    async def resume(self) -> None:
        return await self.inner.resume()

    @power_state
    async def hibernate(self) -> None:
        return await self.inner.hibernate()

    @power_state
    async def activate(self) -> None:
        return await self.inner.activate()


def by_ref(seq: PowerSequence) -> ForwardingPowerSequence:
    return ForwardingPowerSequence(seq)
