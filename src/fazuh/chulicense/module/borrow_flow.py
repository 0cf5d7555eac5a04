from datetime import date
from enum import Enum

from loguru import logger

from fazuh.chulicense.model import FlowSpec
from fazuh.chulicense.portal.portal import LicensePortal


class FlowState(Enum):
    NOT_STARTED = "not_started"
    LOGGED_IN = "logged_in"
    BORROWED = "borrowed"
    FAILED = "failed"


class BorrowFlow:
    """One scheduled borrow: log in, then borrow the flow's program.

    Every invocation starts from scratch with a fresh login; the cookies
    live only as long as this object. Failures end the flow in
    `FlowState.FAILED` and are never raised to the caller.
    """

    def __init__(self, flow: FlowSpec, portal: LicensePortal):
        self.flow = flow
        self.portal = portal
        self.state = FlowState.NOT_STARTED

    async def run(self, borrow_date: date | None = None) -> bool:
        label = self.flow.program.label
        logger.info(f"Borrowing {label} license...")

        try:
            cookies = await self.portal.login()
            if cookies is None:
                logger.error("Login failed")
                self.state = FlowState.FAILED
                return False
            self.state = FlowState.LOGGED_IN

            if not await self.portal.borrow(cookies, self.flow.program, borrow_date):
                logger.error("Borrow failed")
                self.state = FlowState.FAILED
                return False
            self.state = FlowState.BORROWED

        except Exception as e:
            logger.error(f"An error occurred while borrowing {label}: {e}")
            self.state = FlowState.FAILED
            return False

        logger.success(f"Borrowed {label} license successfully")
        return True
