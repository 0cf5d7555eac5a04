import asyncio
from collections.abc import Callable
from collections.abc import Iterable
from datetime import datetime

from croniter import CroniterBadDateError
from croniter import croniter
from loguru import logger

from fazuh.chulicense.config import Config
from fazuh.chulicense.error import ConfigError
from fazuh.chulicense.model import FlowSpec
from fazuh.chulicense.module.borrow_flow import BorrowFlow
from fazuh.chulicense.portal.portal import LicensePortal

# Sleep in slices so a suspended host does not oversleep a trigger.
_MAX_SLEEP = 3600


def next_fire(expression: str, now: datetime) -> datetime:
    """The first time `expression` fires strictly after `now`, in `now`'s timezone."""
    if not croniter.is_valid(expression):
        raise ConfigError(f"Invalid cron expression: '{expression}'")
    try:
        return croniter(expression, now).get_next(datetime)
    except CroniterBadDateError:
        raise ConfigError(f"Cron expression never fires: '{expression}'") from None


class Scheduler:
    """Runs each flow whenever its cron expression fires.

    Flows due in the same minute run concurrently, each with its own portal
    client and cookies. A failed flow is logged and waits for its next
    trigger; there are no retries.
    """

    def __init__(
        self,
        flows: Iterable[FlowSpec],
        config: Config | None = None,
        portal_factory: Callable[[Config], LicensePortal] = LicensePortal,
    ):
        self.conf = config or Config()
        self.flows = list(flows)
        self.portal_factory = portal_factory
        for flow in self.flows:
            if not croniter.is_valid(flow.cron):
                raise ConfigError(f"Invalid cron expression for flow {flow.name}: '{flow.cron}'")

    async def start(self):
        """Starts the scheduler loop."""
        if not self.flows:
            raise ConfigError("No flows to schedule.")

        logger.info(f"Scheduler started with {len(self.flows)} flows: {self.flows}")
        while True:
            await self.run_next()

    def next_runs(self, now: datetime | None = None) -> dict[str, datetime]:
        now = now or datetime.now(self.conf.tz)
        return {flow.name: next_fire(flow.cron, now) for flow in self.flows}

    async def run_next(self) -> dict[str, bool]:
        """Waits for the earliest trigger, then runs every flow due at that minute."""
        next_runs = self.next_runs()
        earliest = min(next_runs.values())
        due = [flow for flow in self.flows if next_runs[flow.name] == earliest]

        logger.info(
            f"Next run: {', '.join(flow.name for flow in due)} at {earliest.isoformat()}"
        )
        await self._sleep_until(earliest)

        results = await asyncio.gather(*(self.run_flow(flow) for flow in due))
        return {flow.name: result for flow, result in zip(due, results)}

    async def run_flow(self, flow: FlowSpec) -> bool:
        return await BorrowFlow(flow, self.portal_factory(self.conf)).run()

    async def _sleep_until(self, when: datetime):
        while True:
            remaining = (when - datetime.now(self.conf.tz)).total_seconds()
            if remaining <= 0:
                return
            await asyncio.sleep(min(remaining, _MAX_SLEEP))
