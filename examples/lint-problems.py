from powerseq.hal import power_state


class Board:

    @power_state
    async def power_off(self) -> None:
        log_event("off")
        await self.rail.disable()

    @power_state
    async def pre_idle(self) -> None:
        return None

    @power_state
    def suspend(self) -> None:
        return None

    async def post_suspend(self) -> None:
        return None
