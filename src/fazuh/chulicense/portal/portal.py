import asyncio
from datetime import date
from datetime import datetime
from datetime import tzinfo
from typing import Protocol
from urllib.parse import urlencode

from loguru import logger
import requests

from fazuh.chulicense.error import AuthenticationError
from fazuh.chulicense.error import BorrowError
from fazuh.chulicense.error import ConfigError
from fazuh.chulicense.model import BorrowRequest
from fazuh.chulicense.model import ProgramLicense
from fazuh.chulicense.portal.path import Path

FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}


class PortalConfig(Protocol):
    domain: str
    tz: tzinfo

    def get(self, name: str) -> str | None: ...


class LicensePortal:
    """Client for the Chula License Portal.

    Both steps are a single form post with redirects disabled. The portal
    answers an accepted form with a 302, and that status code is the only
    success signal we get.
    """

    def __init__(self, config: PortalConfig):
        self.config = config

    async def login(self) -> list[str] | None:
        """Logs in and returns the session cookies, or None on any failure."""
        try:
            email = self._require("STUDENT_EMAIL", "Student email")
            password = self._require("STUDENT_PASSWORD", "Student password")

            logger.info(f"Logging in: {email}")
            logger.debug(f"Payload: {urlencode({'UserName': email, 'Password': '********'})}")

            response = await asyncio.to_thread(
                requests.post,
                Path.LOGIN,
                data={"UserName": email, "Password": password},
                headers=FORM_HEADERS,
                allow_redirects=False,
            )

            if response.status_code != 302:
                raise AuthenticationError(f"Login failed: {response.status_code}")

            cookies = self._extract_cookies(response)
            if not cookies:
                raise AuthenticationError("Login redirected without setting any cookies.")

            logger.debug(f"Cookies: {', '.join(cookies)}")
            return cookies

        except (ConfigError, AuthenticationError) as e:
            logger.error(e)
        except requests.RequestException as e:
            logger.error(f"Login request failed: {e}")

        return None

    async def borrow(
        self,
        cookies: list[str],
        program: ProgramLicense,
        borrow_date: date | None = None,
    ) -> bool:
        """Borrows `program` for its longest allowed duration, starting `borrow_date` (default today)."""
        try:
            azure_user_id = self._require("AZURE_USER_ID", "Azure user ID")
            email = self._require("STUDENT_EMAIL", "Student email")

            if borrow_date is None:
                borrow_date = datetime.now(self.config.tz).date()

            request = BorrowRequest(
                azure_user_id=azure_user_id,
                user_principal_name=email,
                program=program,
                borrow_date=borrow_date,
            )
            payload = request.to_payload(self.config.domain)

            logger.info(
                f"Borrowing {program.label} from {request.borrow_date_str} to {request.expiry_date_str}..."
            )
            logger.debug(f"Payload: {urlencode(payload)}")

            response = await asyncio.to_thread(
                requests.post,
                Path.BORROW,
                data=payload,
                headers={**FORM_HEADERS, "Cookie": "; ".join(cookies)},
                allow_redirects=False,
            )

            if response.status_code != 302:
                raise BorrowError(f"Borrow failed: {response.status_code}")

            return True

        except (ConfigError, BorrowError) as e:
            logger.error(e)
        except requests.RequestException as e:
            logger.error(f"Borrow failed: {e}")

        return False

    def _require(self, name: str, description: str) -> str:
        value = self.config.get(name)
        if not value:
            raise ConfigError(f"{description} is not set")
        return value

    @staticmethod
    def _extract_cookies(response: requests.Response) -> list[str]:
        """Raw Set-Cookie header values, in the order the server sent them."""
        # requests folds repeated headers into one comma-joined value, which
        # breaks on cookie expiry dates. urllib3 keeps them apart.
        return list(response.raw.headers.getlist("Set-Cookie"))
