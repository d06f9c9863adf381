"""Errors raised by the payroll engine.

Configuration errors mean no legally defensible result can be produced and
always propagate to the caller. Persistence errors never invalidate a
computed result.
"""
from datetime import date
from typing import Iterable, Optional

class PayrollError(Exception):
    """Base class for every payroll engine error."""

class ParameterError(PayrollError):
    """A parameter version or index reference could not be resolved."""

class NoActiveVersion(ParameterError):
    def __init__(self):
        super().__init__("No active parameter version found")

class VersionNotFound(ParameterError):
    def __init__(self, version_id: str):
        self.version_id = version_id
        super().__init__(f"Parameter version {version_id} not found")

class NoVersionForDate(ParameterError):
    def __init__(self, target: date):
        self.target = target
        super().__init__(f"No parameter version found for date {target.isoformat()}")

class NoIndexAvailable(ParameterError):
    def __init__(self, index: str, target: date):
        self.index = index
        self.target = target
        super().__init__(f"No {index} value found at or before {target.isoformat()}")

class InvalidPayrollInput(PayrollError, ValueError):
    def __init__(self, field: str, value, allowed: Optional[Iterable[str]] = None):
        self.field = field
        self.value = value
        self.allowed = sorted(allowed) if allowed is not None else None
        msg = f"Invalid value for {field}: {value!r}"
        if self.allowed:
            msg += f" (expected one of: {', '.join(self.allowed)})"
        super().__init__(msg)

class SimulationPersistFailed(PayrollError):
    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"Failed to persist simulation: {cause}")
