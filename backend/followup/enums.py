import enum
from typing import Optional


class Role(str, enum.Enum):
    """Operational role of an authenticated user."""

    DOCTOR = "doctor"
    NURSE = "nurse"
    AGENT = "agent"

    @classmethod
    def parse(cls, value) -> Optional["Role"]:
        """Return the matching role, or None for missing/unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class Permission(str, enum.Enum):
    """Capabilities granted independently of the operational role."""

    DIRECTOR = "director"


class Priority(str, enum.Enum):
    """Manually assigned priority tag, lowest to highest. NULL means unassigned."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Severity(str, enum.Enum):
    """Triage tier derived from days overdue."""

    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"
