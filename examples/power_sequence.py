import abc

from powerseq.hal import power_state


class PowerSequence(abc.ABC):

    @power_state
    @abc.abstractmethod
    async def power_on(self) -> None:
        """Power the device on."""

    @power_state
    @abc.abstractmethod
    async def power_off(self) -> None:
        """Power the device off."""

    @power_state
    async def idle(self) -> None:
        return Ok()

    @power_state
    async def hibernate(self) -> None:
        await self.power_off()

    @power_state
    async def activate(self) -> None:
        await self.power_on()


class Forward:

    def __init__(self, inner):
        self.inner = inner

    @power_state
    async def power_off(self) -> None:
        return await T.power_off(self.inner)
