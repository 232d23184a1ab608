from typing import Any, Dict, List

from chatglass.datatypes.moderation_datatypes import REPORT_THRESHOLD, WARNING_THRESHOLD, ModerationPolicy
from chatglass.moderation.classification import Lexicon, LexiconTerm, parse_content_types


class ModerationSettings:
    """Typed accessors over the ``moderation`` section of the app config.

    Expected shape::

        moderation:
          warning_threshold: 5
          report_threshold: 10
          lexicon:
            extra_terms:
              - {word: "frick", types: [profane, mild]}
            safe_words: ["scunthorpe"]
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for `key` or `default` if missing."""
        return self.data.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        return self.data

    def _threshold(self, key: str, default: int) -> int:
        value = self.data.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"'{key}' must be an integer, got {value!r}")
        return value

    @property
    def warning_threshold(self) -> int:
        return self._threshold("warning_threshold", WARNING_THRESHOLD)

    @property
    def report_threshold(self) -> int:
        return self._threshold("report_threshold", REPORT_THRESHOLD)

    @property
    def policy(self) -> ModerationPolicy:
        """Build the escalation policy; raises ValueError on non-positive thresholds."""
        return ModerationPolicy(
            warning_threshold=self.warning_threshold,
            report_threshold=self.report_threshold,
        )

    @property
    def _lexicon_section(self) -> Dict[str, Any]:
        section = self.data.get("lexicon", {})
        return section if isinstance(section, dict) else {}

    @property
    def extra_terms(self) -> List[LexiconTerm]:
        """Parse configured extra terms; raises ValueError on bad entries."""
        entries = self._lexicon_section.get("extra_terms") or []
        if not isinstance(entries, list):
            return []

        terms: List[LexiconTerm] = []
        for entry in entries:
            if not isinstance(entry, dict) or "word" not in entry:
                raise ValueError(f"Lexicon entry must be a mapping with a 'word', got {entry!r}")
            types = entry.get("types") or []
            if isinstance(types, str):
                types = [types]
            terms.append(
                LexiconTerm(
                    word=str(entry["word"]).strip().casefold(),
                    types=parse_content_types(types),
                    whole_word=bool(entry.get("whole_word", False)),
                )
            )
        return terms

    @property
    def safe_words(self) -> List[str]:
        words = self._lexicon_section.get("safe_words") or []
        return [str(word) for word in words] if isinstance(words, list) else []

    def build_lexicon(self) -> Lexicon:
        """Return the built-in lexicon extended with the configured terms."""
        return Lexicon().extended(self.extra_terms, self.safe_words)
