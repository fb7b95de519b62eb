"""
Exception taxonomy for ping ingestion and status evaluation.

Every error carries a stable machine ``code`` (used by the HTTP layer to
pick a status code) and a short human ``message`` that is returned to
the device or dashboard verbatim.

CHANGELOG:
- 2026-10-18: Initial creation
"""

from __future__ import annotations


class PumpwatchError(Exception):
    """Base class for all errors reported to the immediate caller.

    Attributes:
        code: Stable identifier of the failed precondition.
        message: Short diagnostic string.
    """

    code: str = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(PumpwatchError):
    """A request parameter is missing or malformed.

    Raised before any state is read, so no state is ever mutated.

    Attributes:
        field: Name of the offending parameter.
    """

    code = "parameter-invalid"

    def __init__(self, field: str, message: str | None = None) -> None:
        super().__init__(message or f"'{field}' is missing or invalid.")
        self.field = field


class MissingParameterError(ValidationError):
    """One or more required parameters were not supplied."""

    code = "parameter-missing"

    def __init__(self, field: str) -> None:
        super().__init__(
            field, "One or more required parameters are missing or empty."
        )


class TimestampFormatError(ValidationError):
    """The timestamp does not match ``YYYY-MM-DD HH:MM:SS``."""

    code = "timestamp-format-invalid"

    def __init__(self, value: str) -> None:
        super().__init__(
            "timestamp",
            "'timestamp' format is invalid. Expected format: YYYY-MM-DD HH:MM:SS",
        )
        self.value = value


class TimezoneError(ValidationError):
    """The timezone name is not a known IANA zone.

    Never silently replaced by a default zone: a substituted zone shifts
    every gap computed against the sample.
    """

    code = "timezone-invalid"

    def __init__(self, value: str) -> None:
        super().__init__("timezone", f"'timezone' {value!r} is not a valid IANA zone name.")
        self.value = value


class UnregisteredDeviceError(PumpwatchError):
    """The device identifier is not in the registry."""

    code = "device-unregistered"

    def __init__(self, device_id: str) -> None:
        super().__init__("'deviceId' is not registered.")
        self.device_id = device_id


class StorageError(PumpwatchError):
    """Reading or writing a buffer or event history failed.

    The surrounding transaction has been rolled back when this is raised.
    """

    code = "storage-write-failure"

    def __init__(self, message: str = "Failed to save data.") -> None:
        super().__init__(message)
