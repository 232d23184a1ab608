"""
Per-user moderation state machine.

`GlassModeration` filters outgoing text and escalates a user's
:class:`ModerationRecord` from warnings to reports to a mute:

- every ``warning_threshold`` warnings (5) become one report;
- ``report_threshold`` reports (10) mute the user;
- a muted user cannot send anything until explicitly unmuted.

The engine holds no per-user state itself. Callers own one record per user,
pass it into each call, and must serialize calls that touch the same record.
"""

from __future__ import annotations

from chatglass.datatypes.moderation_datatypes import ModerationPolicy, ModerationRecord
from chatglass.moderation.classification import (
    GLASS_CENSOR_SETTINGS,
    Classifier,
    ContentType,
    LexicalClassifier,
)
from chatglass.moderation.moderation_errors import ClassificationFailed, InappropriateContent, UserMuted
from chatglass.util.logger import get_logger

logger = get_logger("glass_moderation")

REJECT_FLAGS = ContentType.OFFENSIVE | ContentType.SEVERE


class GlassModeration:
    """Moderation operations applied to a caller-owned record.

    Args:
        classifier: Text classification capability. Defaults to
            :class:`LexicalClassifier`.
        policy: Escalation thresholds. Defaults to 5 warnings per report and
            10 reports per mute.
    """

    def __init__(self, classifier: Classifier | None = None, policy: ModerationPolicy | None = None) -> None:
        self.classifier: Classifier = classifier if classifier is not None else LexicalClassifier()
        self.policy = policy if policy is not None else ModerationPolicy()

    def process(self, record: ModerationRecord, text: str) -> str:
        """Run ``text`` through the censoring filter and escalate as needed.

        Text flagged offensive and severe earns a warning and is rejected.
        Evasive text earns a warning but still goes through, censored.

        Returns:
            str: The censored text to deliver.

        Raises:
            UserMuted: The user is muted; the record is left untouched.
            InappropriateContent: The text was rejected after warning the user.
            ClassificationFailed: The classifier failed; no warning is applied.
        """
        if record.is_muted:
            logger.debug("[GLASS] Rejected message from muted user")
            raise UserMuted()

        try:
            result = self.classifier.classify(text, GLASS_CENSOR_SETTINGS)
        except Exception as exc:
            logger.error("[GLASS] Classification failed: %s", exc)
            raise ClassificationFailed() from exc

        if result.is_flagged(REJECT_FLAGS):
            self.warn(record)
            logger.warning("[GLASS] Message rejected as inappropriate (flags: %s)", result.flags)
            raise InappropriateContent()

        if result.is_flagged(ContentType.EVASIVE):
            logger.info("[GLASS] Evasive message let through censored")
            self.warn(record)

        return result.censored

    def warn(self, record: ModerationRecord) -> None:
        """Add a warning, rolling the warnings over into a report at the threshold."""
        record.warnings += 1
        logger.info("[GLASS] Warning issued (%d/%d)", record.warnings, self.policy.warning_threshold)
        if record.warnings >= self.policy.warning_threshold:
            record.warnings = 0
            self.report(record)

    def report(self, record: ModerationRecord) -> None:
        """Add a report, muting the user once the report threshold is reached."""
        record.reports += 1
        logger.info("[GLASS] Report filed (%d/%d)", record.reports, self.policy.report_threshold)
        if record.reports >= self.policy.report_threshold and not record.is_muted:
            record.is_muted = True
            logger.info("[GLASS] Report threshold reached, user muted")

    def mute(self, record: ModerationRecord) -> None:
        """Mute the user."""
        record.is_muted = True
        logger.info("[GLASS] User muted")

    def unmute(self, record: ModerationRecord) -> None:
        """Unmute the user. Warnings and reports are kept."""
        record.is_muted = False
        logger.info("[GLASS] User unmuted")

    def status(self, record: ModerationRecord) -> str:
        """Return a one-line summary of ``record`` for display."""
        state = "muted" if record.is_muted else "active"
        return (
            f"{state}, warnings {record.warnings}/{self.policy.warning_threshold}, "
            f"reports {record.reports}/{self.policy.report_threshold}"
        )
