"""Custom exception hierarchy for the ChuLicense application.

Login and borrow raise these internally and turn them into a logged
failure at their own boundary, so callers only ever see success or failure.
"""


class ChuLicenseError(Exception): ...


class ConfigError(ChuLicenseError):
    """Error caused by invalid or missing user configuration."""


class AuthenticationError(ChuLicenseError):
    """The portal did not accept the login form."""


class BorrowError(ChuLicenseError):
    """The portal did not accept the borrow form."""
