import abc

from powerseq.hal import power_state


class PowerSequence(abc.ABC):

    async def pre_power_on(self) -> None:
        """Hook run before :meth:`power_on`."""
        return None

    @abc.abstractmethod
    async def power_on(self) -> None:
        """Power the device on."""

    async def post_power_on(self) -> None:
        """Hook run after :meth:`power_on`."""
        return None

    async def pre_power_off(self) -> None:
        """Hook run before :meth:`power_off`."""
        return None

    @abc.abstractmethod
    async def power_off(self) -> None:
        """Power the device off."""

    async def post_power_off(self) -> None:
        """Hook run after :meth:`power_off`."""
        return None

    async def pre_idle(self) -> None:
        """Hook run before :meth:`idle`."""
        return Ok()

    async def idle(self) -> None:
        return Ok()

    async def post_idle(self) -> None:
        """Hook run after :meth:`idle`."""
        return Ok()

    async def pre_hibernate(self) -> None:
        """Hook run before :meth:`hibernate`."""
        await self.pre_power_off()

    async def hibernate(self) -> None:
        await self.power_off()

    async def post_hibernate(self) -> None:
        """Hook run after :meth:`hibernate`."""
        await self.post_power_off()

    async def pre_activate(self) -> None:
        """Hook run before :meth:`activate`."""
        await self.pre_power_on()

    async def activate(self) -> None:
        await self.power_on()

    async def post_activate(self) -> None:
        """Hook run after :meth:`activate`."""
        await self.post_power_on()


class Forward:

    def __init__(self, inner):
        self.inner = inner

    async def pre_power_off(self) -> None:
        """Hook run before :meth:`power_off`."""
        return await T.pre_power_off(self.inner)

    async def power_off(self) -> None:
        return await T.power_off(self.inner)

    async def post_power_off(self) -> None:
        """Hook run after :meth:`power_off`."""
        return await T.post_power_off(self.inner)
