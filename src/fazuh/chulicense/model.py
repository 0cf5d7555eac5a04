from dataclasses import dataclass
from datetime import date
from datetime import timedelta
from enum import IntEnum
import json
from pathlib import Path
from types import MappingProxyType

from loguru import logger
import yaml

from fazuh.chulicense.error import ConfigError


class ProgramLicense(IntEnum):
    """Program License ID from the license portal's borrow page."""

    ZOOM = 2
    ADOBE_CC = 5
    FOXIT = 7

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def parse(cls, value: "str | int | ProgramLicense") -> "ProgramLicense":
        """Accepts a portal ID (2, "5") or a product name ("Zoom", "AdobeCC", "adobe_cc")."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int) or (isinstance(value, str) and value.strip().isdigit()):
            try:
                return cls(int(value))
            except ValueError:
                raise ConfigError(f"Unknown program license ID: {value}") from None

        key = str(value).strip().replace("_", "").replace(" ", "").lower()
        for program in cls:
            if program.name.replace("_", "").lower() == key:
                return program
        raise ConfigError(f"Unknown program license: {value}")


_LABELS = {
    ProgramLicense.ZOOM: "Zoom",
    ProgramLicense.ADOBE_CC: "Adobe",
    ProgramLicense.FOXIT: "Foxit",
}

# The longest duration, in days, that each program can be borrowed for.
BORROW_DURATION = MappingProxyType(
    {
        ProgramLicense.ZOOM: 120,
        ProgramLicense.ADOBE_CC: 7,
        ProgramLicense.FOXIT: 7,
    }
)


def format_portal_date(d: date) -> str:
    """Formats a date the way the portal's form expects it: '7/2/2024', no zero padding."""
    return f"{d.day}/{d.month}/{d.year}"


@dataclass(frozen=True)
class BorrowRequest:
    azure_user_id: str
    user_principal_name: str
    program: ProgramLicense
    borrow_date: date

    @property
    def expiry_date(self) -> date:
        return self.borrow_date + timedelta(days=BORROW_DURATION[self.program])

    @property
    def borrow_date_str(self) -> str:
        return format_portal_date(self.borrow_date)

    @property
    def expiry_date_str(self) -> str:
        return format_portal_date(self.expiry_date)

    def to_payload(self, domain: str) -> dict[str, str]:
        """Form fields of the borrow post, in the order the portal sends them."""
        return {
            "AzureUserId": self.azure_user_id,
            "UserPrincipalName": self.user_principal_name,
            "BorrowStatus": "Borrowing",
            "ProgramLicenseID": str(int(self.program)),
            "BorrowDateStr": self.borrow_date_str,
            "ExpiryDateStr": self.expiry_date_str,
            "Domain": domain,
        }


@dataclass
class FlowSpec:
    """A scheduled borrow: which program, and when (cron expression)."""

    name: str
    program: ProgramLicense
    cron: str

    def __repr__(self):
        return f"[{self.name}] {self.program.label} @ '{self.cron}'"


DEFAULT_FLOWS = (
    FlowSpec(name="adobe", program=ProgramLicense.ADOBE_CC, cron="0 0 * * 0"),
    FlowSpec(name="zoom", program=ProgramLicense.ZOOM, cron="0 0 1 */4 *"),
)


def load_flows(path: str | Path = "flows.yaml") -> list[FlowSpec]:
    """Loads the flow table from a YAML file, or its JSON sibling.

    Falls back to the built-in adobe (weekly) and zoom (every four months)
    flows when neither file exists.
    """
    yaml_path = Path(path)
    json_path = yaml_path.with_suffix(".json")

    if yaml_path.exists():
        logger.info(f"Loading flows from {yaml_path}")
        with open(yaml_path, "r") as f:
            data = yaml.safe_load(f)
    elif json_path.exists():
        logger.info(f"Loading flows from {json_path}")
        with open(json_path, "r") as f:
            data = json.load(f)
    else:
        logger.debug(f"No flows file found at {yaml_path}. Using default flows.")
        return list(DEFAULT_FLOWS)

    if not isinstance(data, list):
        raise ConfigError("Flows file must contain a list of {name, program, cron} items.")

    flows = []
    for item in data:
        if not isinstance(item, dict):
            raise ConfigError(f"Invalid flow entry: {item!r}")
        missing = {"name", "program", "cron"} - item.keys()
        if missing:
            raise ConfigError(f"Flow entry {item!r} is missing: {', '.join(sorted(missing))}")

        flows.append(
            FlowSpec(
                name=str(item["name"]),
                program=ProgramLicense.parse(item["program"]),
                cron=str(item["cron"]),
            )
        )

    if not flows:
        raise ConfigError("Flows file must define at least one flow.")

    names = [flow.name for flow in flows]
    if len(names) != len(set(names)):
        raise ConfigError("Flow names must be unique.")

    logger.info(f"Loaded {len(flows)} flows.")
    return flows
