"""
Error Taxonomy

Pure computation errors live here. Storage errors live next to the
storage interface (see services/storage/interface.py) and share the
same base class.
"""


class MoneySaverError(Exception):
    """Base exception for the ledger core."""
    pass


class InvalidTimestamp(MoneySaverError, ValueError):
    """A timestamp could not be parsed as ISO-8601."""

    def __init__(self, value: object, message: str = ""):
        self.value = value
        super().__init__(message or f"Invalid timestamp: {value!r}")


class RejectedError(MoneySaverError, ValueError):
    """Goal transaction input failed validation. Nothing was mutated."""
    pass
