class Path:
    """URL constants for the Chula License Portal."""

    HOSTNAME = "https://licenseportal.it.chula.ac.th/"
    LOGIN = HOSTNAME
    BORROW = f"{HOSTNAME}Home/Borrow"
