import json
from pathlib import Path

import pytest

from chatglass.configuration.app_configuration import AppConfig
from chatglass.configuration.moderation_settings import ModerationSettings
from chatglass.moderation.classification import ContentType, LexicalClassifier


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "app_config.yml"


def test_app_config_reload_parses_yaml(config_path: Path) -> None:
    config_path.write_text(
        "moderation:\n"
        "  warning_threshold: 3\n"
        "  report_threshold: 4\n"
        "  lexicon:\n"
        "    extra_terms:\n"
        "      - {word: Frick, types: [profane, severe]}\n"
        "    safe_words: [fricking]\n"
        "console:\n"
        "  user: {name: alice, id: 42}\n",
        encoding="utf-8",
    )

    config = AppConfig(config_path)

    settings = config.moderation_settings
    assert settings.warning_threshold == 3
    assert settings.report_threshold == 4
    assert settings.policy.warning_threshold == 3
    assert [term.word for term in settings.extra_terms] == ["frick"]
    assert settings.extra_terms[0].types == ContentType.PROFANE | ContentType.SEVERE
    assert settings.safe_words == ["fricking"]
    assert config.console_user == ("alice", 42)


def test_app_config_accepts_json_documents(config_path: Path) -> None:
    config_path.write_text(json.dumps({"moderation": {"warning_threshold": 2}}), encoding="utf-8")

    config = AppConfig(config_path)

    assert config.get("moderation") == {"warning_threshold": 2}
    assert config.moderation_settings.policy.report_threshold == 10


def test_app_config_missing_file_returns_defaults(tmp_path: Path) -> None:
    config = AppConfig(tmp_path / "does_not_exist.yml")

    assert config.data == {}
    assert config.moderation_settings.policy.warning_threshold == 5
    assert config.moderation_settings.extra_terms == []
    assert config.console_user == ("operator", 1)


def test_app_config_non_mapping_is_ignored(config_path: Path) -> None:
    config_path.write_text("- just\n- a list\n", encoding="utf-8")

    assert AppConfig(config_path).data == {}


def test_app_config_broken_yaml_is_ignored(config_path: Path) -> None:
    config_path.write_text("moderation: [unclosed\n", encoding="utf-8")

    assert AppConfig(config_path).data == {}


def test_app_config_reload_picks_up_changes(config_path: Path) -> None:
    config_path.write_text("console: {user: {name: a, id: 1}}\n", encoding="utf-8")
    config = AppConfig(config_path)

    config_path.write_text("console: {user: {name: b, id: 2}}\n", encoding="utf-8")
    config.reload()

    assert config.console_user == ("b", 2)


def test_console_user_bad_id_falls_back(config_path: Path) -> None:
    config_path.write_text("console: {user: {name: carol, id: nope}}\n", encoding="utf-8")

    assert AppConfig(config_path).console_user == ("carol", 1)


def test_moderation_settings_invalid_threshold() -> None:
    with pytest.raises(ValueError):
        ModerationSettings({"warning_threshold": 0}).policy


@pytest.mark.parametrize("value", [None, 5.9, "5", True])
def test_moderation_settings_threshold_must_be_an_integer(value) -> None:
    with pytest.raises(ValueError):
        ModerationSettings({"warning_threshold": value}).warning_threshold


def test_moderation_settings_blank_threshold_in_yaml(config_path: Path) -> None:
    config_path.write_text("moderation:\n  report_threshold:\n", encoding="utf-8")

    with pytest.raises(ValueError):
        AppConfig(config_path).moderation_settings.policy


def test_moderation_settings_invalid_term() -> None:
    settings = ModerationSettings({"lexicon": {"extra_terms": [{"types": ["mild"]}]}})
    with pytest.raises(ValueError):
        settings.extra_terms


def test_moderation_settings_single_type_string() -> None:
    settings = ModerationSettings({"lexicon": {"extra_terms": [{"word": "heck", "types": "mild"}]}})
    assert settings.extra_terms[0].types == ContentType.MILD


def test_built_lexicon_feeds_classifier() -> None:
    settings = ModerationSettings(
        {"lexicon": {"extra_terms": [{"word": "frick", "types": ["profane", "severe"], "whole_word": True}]}}
    )
    classifier = LexicalClassifier(settings.build_lexicon())

    result = classifier.classify("oh frick")

    assert result.censored == "oh f****"
    assert result.is_flagged(ContentType.PROFANE | ContentType.SEVERE)
