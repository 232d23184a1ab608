"""
Per-user moderation state and the thresholds that drive it.

`ModerationRecord` is the mutable state a user carries (warnings, reports and
the mute flag). `ModerationPolicy` holds the thresholds at which warnings turn
into a report and reports turn into a mute. Both are plain data; the
transitions live in `chatglass.moderation.glass_moderation`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping

# Warnings that convert into one report
WARNING_THRESHOLD: int = 5
# Reports that trigger an automatic mute
REPORT_THRESHOLD: int = 10


@dataclass(frozen=True, slots=True)
class ModerationPolicy:
    """Escalation thresholds.

    Attributes:
        warning_threshold (int): Warnings that roll over into one report.
        report_threshold (int): Reports that mute the user.
    """

    warning_threshold: int = WARNING_THRESHOLD
    report_threshold: int = REPORT_THRESHOLD

    def __post_init__(self) -> None:
        for name in ("warning_threshold", "report_threshold"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")


@dataclass(slots=True)
class ModerationRecord:
    """Moderation state owned by a single user.

    Attributes:
        reports (int): Reports received, never decreases.
        warnings (int): Warnings since the last rollover into a report.
        is_muted (bool): Whether the user is currently muted.
    """

    reports: int = 0
    warnings: int = 0
    is_muted: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-ready mapping so callers can persist the record."""
        return {"reports": self.reports, "warnings": self.warnings, "is_muted": self.is_muted}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ModerationRecord":
        """Rebuild a record from :meth:`to_dict` output.

        Missing keys fall back to a fresh record's values.

        Raises:
            ValueError: If a counter is negative or not an integer, or if
                ``is_muted`` is not a boolean.
        """
        counters: Dict[str, int] = {}
        for key in ("reports", "warnings"):
            value = data.get(key, 0)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"'{key}' must be a non-negative integer, got {value!r}")
            counters[key] = value
        is_muted = data.get("is_muted", False)
        if not isinstance(is_muted, bool):
            raise ValueError(f"'is_muted' must be a boolean, got {is_muted!r}")
        return cls(reports=counters["reports"], warnings=counters["warnings"], is_muted=is_muted)
