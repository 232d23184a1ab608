"""
Unit tests for the GlassModeration state machine.

A scripted classifier stands in for the lexical one so each test controls
exactly which flags a message carries.
"""

import pytest

from chatglass.datatypes.moderation_datatypes import ModerationPolicy, ModerationRecord
from chatglass.moderation.classification import (
    GLASS_CENSOR_SETTINGS,
    CensorSettings,
    ClassificationResult,
    Classifier,
    ContentType,
)
from chatglass.moderation.glass_moderation import GlassModeration
from chatglass.moderation.moderation_errors import (
    ClassificationFailed,
    InappropriateContent,
    ModerationError,
    UserMuted,
)


class ScriptedClassifier:
    """Returns a fixed result and remembers what it was asked."""

    def __init__(self, flags: ContentType = ContentType.NONE, censored: str | None = None) -> None:
        self.flags = flags
        self.censored = censored
        self.calls: list[tuple[str, CensorSettings]] = []

    def classify(self, text: str, settings: CensorSettings) -> ClassificationResult:
        self.calls.append((text, settings))
        return ClassificationResult(
            censored=self.censored if self.censored is not None else text,
            flags=self.flags,
        )


class FailingClassifier:
    def classify(self, text: str, settings: CensorSettings) -> ClassificationResult:
        raise UnicodeError("bad encoding")


SEVERE_OFFENSIVE = ContentType.OFFENSIVE | ContentType.SEVERE


@pytest.fixture()
def record() -> ModerationRecord:
    return ModerationRecord()


def make_engine(flags: ContentType = ContentType.NONE, censored: str | None = None) -> GlassModeration:
    return GlassModeration(classifier=ScriptedClassifier(flags, censored))


class TestWarn:
    """Warnings and their rollover into reports."""

    def test_single_warning(self, record):
        GlassModeration().warn(record)
        assert record.warnings == 1
        assert record.reports == 0

    def test_five_warnings_roll_into_one_report(self, record):
        engine = GlassModeration()
        for _ in range(5):
            engine.warn(record)
        assert record.warnings == 0
        assert record.reports == 1
        assert record.is_muted is False

    def test_fifty_warnings_mute(self, record):
        engine = GlassModeration()
        for _ in range(50):
            engine.warn(record)
        assert record.is_muted is True
        assert record.warnings == 0
        assert record.reports == 10

    def test_counters_stay_in_range_until_mute(self, record):
        engine = GlassModeration()
        for _ in range(49):
            engine.warn(record)
            assert 0 <= record.warnings < 5
            assert 0 <= record.reports < 10
        assert record.is_muted is False


class TestReport:
    """Reports and the automatic mute."""

    def test_report_increments(self, record):
        GlassModeration().report(record)
        assert record.reports == 1
        assert record.warnings == 0

    def test_tenth_report_mutes(self, record):
        engine = GlassModeration()
        for _ in range(9):
            engine.report(record)
        assert record.is_muted is False
        engine.report(record)
        assert record.is_muted is True

    def test_reports_keep_counting_after_mute(self, record):
        engine = GlassModeration()
        for _ in range(12):
            engine.report(record)
        assert record.reports == 12
        assert record.is_muted is True

    def test_custom_policy(self, record):
        engine = GlassModeration(policy=ModerationPolicy(warning_threshold=2, report_threshold=1))
        engine.warn(record)
        assert record.is_muted is False
        engine.warn(record)
        assert record.reports == 1
        assert record.is_muted is True


class TestMute:
    """Explicit mute and unmute."""

    def test_mute_then_unmute_keeps_counters(self, record):
        engine = GlassModeration()
        for _ in range(7):
            engine.warn(record)
        before = (record.warnings, record.reports)

        engine.mute(record)
        assert record.is_muted is True
        engine.unmute(record)

        assert record.is_muted is False
        assert (record.warnings, record.reports) == before

    def test_unmute_after_auto_mute_keeps_reports(self, record):
        engine = GlassModeration()
        for _ in range(10):
            engine.report(record)
        engine.unmute(record)
        assert record.is_muted is False
        assert record.reports == 10


class TestProcess:
    """Filtering and escalation in process()."""

    def test_clean_text_passes_unchanged(self, record):
        engine = make_engine()
        assert engine.process(record, "hello there") == "hello there"
        assert record == ModerationRecord()

    def test_returns_censored_text(self, record):
        engine = make_engine(ContentType.PROFANE | ContentType.SEVERE, censored="f***")
        assert engine.process(record, "fuck") == "f***"
        assert record.warnings == 0

    def test_offensive_severe_is_rejected_with_one_warning(self, record):
        engine = make_engine(SEVERE_OFFENSIVE)
        with pytest.raises(InappropriateContent):
            engine.process(record, "slur")
        assert record.warnings == 1

    def test_offensive_without_severe_passes(self, record):
        engine = make_engine(ContentType.OFFENSIVE | ContentType.MODERATE)
        assert engine.process(record, "meh") == "meh"
        assert record.warnings == 0

    def test_rejection_applies_rollover(self, record):
        record.warnings = 4
        engine = make_engine(SEVERE_OFFENSIVE)
        with pytest.raises(InappropriateContent):
            engine.process(record, "slur")
        assert record.warnings == 0
        assert record.reports == 1

    def test_evasive_passes_with_warning(self, record):
        engine = make_engine(ContentType.EVASIVE | ContentType.PROFANE, censored="f * * *")
        assert engine.process(record, "f u c k") == "f * * *"
        assert record.warnings == 1

    def test_evasive_and_severe_offensive_warns_once(self, record):
        engine = make_engine(SEVERE_OFFENSIVE | ContentType.EVASIVE)
        with pytest.raises(InappropriateContent):
            engine.process(record, "sl_r")
        assert record.warnings == 1

    def test_muted_user_is_rejected_without_classifying(self, record):
        classifier = ScriptedClassifier(SEVERE_OFFENSIVE)
        engine = GlassModeration(classifier=classifier)
        record.is_muted = True
        record.warnings = 3
        record.reports = 2

        with pytest.raises(UserMuted):
            engine.process(record, "anything")

        assert classifier.calls == []
        assert (record.warnings, record.reports, record.is_muted) == (3, 2, True)

    def test_uses_fixed_censor_settings(self, record):
        classifier = ScriptedClassifier()
        GlassModeration(classifier=classifier).process(record, "hi")
        (_, settings), = classifier.calls
        assert settings is GLASS_CENSOR_SETTINGS
        assert settings.censor_threshold == ContentType.SEVERE
        assert settings.censor_first_character_threshold == SEVERE_OFFENSIVE
        assert settings.ignore_false_positives is False
        assert settings.ignore_self_censoring is False
        assert settings.censor_replacement == "*"

    def test_classifier_failure_is_distinct_and_not_penalised(self, record):
        engine = GlassModeration(classifier=FailingClassifier())
        with pytest.raises(ClassificationFailed) as excinfo:
            engine.process(record, "hi")
        assert not isinstance(excinfo.value, InappropriateContent)
        assert isinstance(excinfo.value.__cause__, UnicodeError)
        assert record == ModerationRecord()

    def test_repeated_rejections_end_in_mute(self, record):
        engine = make_engine(SEVERE_OFFENSIVE)
        for _ in range(50):
            with pytest.raises(InappropriateContent):
                engine.process(record, "slur")
        assert record.is_muted is True
        with pytest.raises(UserMuted):
            engine.process(record, "sorry")

    def test_errors_share_a_base_class(self):
        for error in (UserMuted(), InappropriateContent(), ClassificationFailed()):
            assert isinstance(error, ModerationError)


class TestDefaults:
    def test_default_classifier_satisfies_protocol(self):
        assert isinstance(GlassModeration().classifier, Classifier)

    def test_default_engine_end_to_end(self, record):
        engine = GlassModeration()
        assert engine.process(record, "what the fuck") == "what the f***"
        assert record.warnings == 0

        with pytest.raises(InappropriateContent):
            engine.process(record, "kys")
        assert record.warnings == 1

    def test_severe_and_offensive_words_from_different_terms_pass(self, record):
        engine = GlassModeration()
        assert engine.process(record, "fuck you bastard") == "f*** you bastard"
        assert record == ModerationRecord()

    def test_wrapped_slur_is_rejected(self, record):
        engine = GlassModeration()
        with pytest.raises(InappropriateContent):
            engine.process(record, "**kys**")
        assert record.warnings == 1

    def test_status_summary(self, record):
        engine = GlassModeration()
        engine.warn(record)
        assert engine.status(record) == "active, warnings 1/5, reports 0/10"
        engine.mute(record)
        assert engine.status(record).startswith("muted")
