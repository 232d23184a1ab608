"""
Text classification used by the moderation engine.

The engine only depends on the :class:`Classifier` protocol: given a piece of
text and a :class:`CensorSettings`, return the censored text together with the
:class:`ContentType` flags detected in it. :class:`LexicalClassifier` is the
default implementation, a word-list matcher that also recognises common
evasion tricks:

- leetspeak and symbol substitution (``sh1t``, ``$hit``)
- accented or look-alike letters (``fück``, Cyrillic ``а``)
- letters split apart by spaces or punctuation (``f u c k``, ``f.u.c.k``)
- stretched letters (``fuuuck``)
- self-censoring with ``*``, ``#`` or ``_`` (``f*ck``)
- zero-width characters and combining accents inside a word

Any match found through one of these tricks adds ``ContentType.EVASIVE`` to
the result.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass, field
from enum import Flag
from typing import Dict, FrozenSet, Iterable, List, Protocol, Sequence, Tuple, runtime_checkable

from chatglass.util.logger import get_logger

logger = get_logger("classification")


class ContentType(Flag):
    """Content categories and severities reported by a classifier."""

    NONE = 0
    PROFANE = 1
    OFFENSIVE = 2
    SEXUAL = 4
    MEAN = 8
    EVASIVE = 16
    MILD = 32
    MODERATE = 64
    SEVERE = 128


CATEGORIES = (
    ContentType.PROFANE
    | ContentType.OFFENSIVE
    | ContentType.SEXUAL
    | ContentType.MEAN
    | ContentType.EVASIVE
)

# Lowest to highest
SEVERITIES: Sequence[ContentType] = (ContentType.MILD, ContentType.MODERATE, ContentType.SEVERE)


def severity_rank(types: ContentType) -> int:
    """Return 1-3 for the highest severity present in ``types``, or 0 for none."""
    rank = 0
    for position, severity in enumerate(SEVERITIES, start=1):
        if severity in types:
            rank = position
    return rank


def meets_threshold(types: ContentType, threshold: ContentType) -> bool:
    """Check whether ``types`` reaches ``threshold``.

    When the threshold names categories, ``types`` must share at least one of
    them. When it names a severity, ``types`` must be at least that severe.
    An empty threshold is never met.
    """
    if threshold == ContentType.NONE:
        return False

    categories = threshold & CATEGORIES
    if categories and not (types & categories):
        return False

    return severity_rank(types) >= severity_rank(threshold)


def parse_content_types(names: Iterable[str]) -> ContentType:
    """Build a flag from names such as ``["offensive", "severe"]``.

    Raises:
        ValueError: If a name is not a known content type.
    """
    types = ContentType.NONE
    for name in names:
        try:
            types |= ContentType[str(name).strip().upper()]
        except KeyError as exc:
            raise ValueError(f"Unknown content type '{name}'") from exc
    return types


@dataclass(frozen=True, slots=True)
class CensorSettings:
    """Analysis parameters handed to a classifier.

    Attributes:
        censor_threshold: Matches at or above this are redacted.
        censor_first_character_threshold: Matches at or above this lose their
            first character too; below it the first character stays visible.
        ignore_false_positives: Skip the safe-word list.
        ignore_self_censoring: Do not treat ``*``/``#``/``_`` as hidden letters.
        censor_replacement: Glyph written over redacted characters.
    """

    censor_threshold: ContentType = ContentType.SEVERE
    censor_first_character_threshold: ContentType = ContentType.OFFENSIVE | ContentType.SEVERE
    ignore_false_positives: bool = False
    ignore_self_censoring: bool = False
    censor_replacement: str = "*"


# Fixed settings used by the moderation engine
GLASS_CENSOR_SETTINGS = CensorSettings()


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """Censored rendering of a text and the flags found in it.

    Attributes:
        censored: Text with redactions applied.
        flags: Union of everything found.
        matches: Flags of each individual match. A result built without them
            is treated as one match carrying ``flags``.
    """

    censored: str
    flags: ContentType = ContentType.NONE
    matches: Tuple[ContentType, ...] = ()

    def __post_init__(self) -> None:
        if not self.matches and self.flags != ContentType.NONE:
            object.__setattr__(self, "matches", (self.flags,))

    def is_flagged(self, mask: ContentType) -> bool:
        """Return True when every flag in ``mask`` is present.

        A mask naming a severity must be met by a single match, so a severe
        profanity next to a moderate insult is not "offensive and severe".
        """
        if mask == ContentType.NONE:
            return False
        if severity_rank(mask) == 0:
            return (self.flags & mask) == mask
        return any((types & mask) == mask for types in self.matches)


class ClassificationError(Exception):
    """Raised when a classifier cannot analyse its input."""


@runtime_checkable
class Classifier(Protocol):
    """Anything able to censor and classify a piece of text."""

    def classify(self, text: str, settings: CensorSettings) -> ClassificationResult:
        ...


# -------------------- Lexicon --------------------

@dataclass(frozen=True, slots=True)
class LexiconTerm:
    """A single word the classifier looks for.

    Attributes:
        word: Lowercase ASCII letters.
        types: Categories plus one severity.
        whole_word: Only match when the term is the entire token. Short terms
            use this because they appear inside many harmless words.
    """

    word: str
    types: ContentType
    whole_word: bool = False

    def __post_init__(self) -> None:
        if not self.word or not (self.word.isascii() and self.word.isalpha() and self.word.islower()):
            raise ValueError(f"Lexicon term must be lowercase ASCII letters, got '{self.word}'")
        if severity_rank(self.types) == 0:
            object.__setattr__(self, "types", self.types | ContentType.MODERATE)


_P = ContentType.PROFANE
_O = ContentType.OFFENSIVE
_S = ContentType.SEXUAL
_M = ContentType.MEAN

DEFAULT_TERMS: Sequence[LexiconTerm] = (
    LexiconTerm("damn", _P | ContentType.MILD, whole_word=True),
    LexiconTerm("hell", _P | ContentType.MILD, whole_word=True),
    LexiconTerm("crap", _P | ContentType.MILD, whole_word=True),
    LexiconTerm("ass", _P | ContentType.MILD, whole_word=True),
    LexiconTerm("piss", _P | ContentType.MILD),
    LexiconTerm("shit", _P | ContentType.MODERATE),
    LexiconTerm("bastard", _P | _O | ContentType.MODERATE),
    LexiconTerm("asshole", _P | _M | ContentType.MODERATE),
    LexiconTerm("bitch", _P | _M | ContentType.MODERATE),
    LexiconTerm("dick", _P | _S | ContentType.MODERATE, whole_word=True),
    LexiconTerm("cock", _S | ContentType.MODERATE),
    LexiconTerm("tits", _S | ContentType.MODERATE, whole_word=True),
    LexiconTerm("twat", _P | _S | ContentType.MODERATE, whole_word=True),
    LexiconTerm("wanker", _P | _S | ContentType.MODERATE),
    LexiconTerm("whore", _S | _O | ContentType.MODERATE),
    LexiconTerm("slut", _S | _O | ContentType.MODERATE),
    LexiconTerm("fuck", _P | ContentType.SEVERE),
    LexiconTerm("motherfucker", _P | _O | ContentType.SEVERE),
    LexiconTerm("cunt", _P | _S | _O | ContentType.SEVERE),
    LexiconTerm("retard", _O | _M | ContentType.SEVERE),
    LexiconTerm("faggot", _O | ContentType.SEVERE),
    LexiconTerm("fag", _O | ContentType.SEVERE, whole_word=True),
    LexiconTerm("nigger", _O | ContentType.SEVERE),
    LexiconTerm("kike", _O | ContentType.SEVERE, whole_word=True),
    LexiconTerm("kys", _O | _M | ContentType.SEVERE, whole_word=True),
)

DEFAULT_SAFE_WORDS: FrozenSet[str] = frozenset({
    "scunthorpe",
    "shiitake",
    "shitake",
    "cocktail",
    "cockpit",
    "cockroach",
    "cockatoo",
    "peacock",
    "hancock",
    "shuttlecock",
    "retardant",
})


@dataclass(frozen=True, slots=True)
class Lexicon:
    """Terms to detect plus safe words that contain them harmlessly."""

    terms: Sequence[LexiconTerm] = DEFAULT_TERMS
    safe_words: FrozenSet[str] = DEFAULT_SAFE_WORDS

    def extended(self, extra_terms: Iterable[LexiconTerm] = (), safe_words: Iterable[str] = ()) -> "Lexicon":
        """Return a copy with more terms and safe words.

        An extra term replaces a built-in term with the same word.
        """
        merged: Dict[str, LexiconTerm] = {term.word: term for term in self.terms}
        for term in extra_terms:
            merged[term.word] = term
        return Lexicon(
            terms=tuple(merged.values()),
            safe_words=self.safe_words | {word.casefold() for word in safe_words},
        )


# -------------------- Character folding --------------------

_LEET_DIGITS: Dict[str, str] = {
    "0": "o", "1": "i", "3": "e", "4": "a", "5": "s", "7": "t", "8": "b",
}
# Only read as letters when a letter or digit follows
_LEET_SYMBOLS: Dict[str, str] = {
    "@": "a", "$": "s", "!": "i", "|": "l", "+": "t",
}
_WILDCARDS: FrozenSet[str] = frozenset({"*", "#", "_"})
_CONFUSABLES: Dict[str, str] = {
    "а": "a", "е": "e", "о": "o", "р": "p", "с": "c", "у": "y",
    "х": "x", "і": "i", "ѕ": "s", "ԁ": "d", "ɡ": "g", "ı": "i",
}
_NEVER_MATCHES = "\x00"

# Single-character tokens joined across gaps up to this length ("f . u")
_MAX_SPLIT_GAP = 3
_MIN_SPLIT_LETTERS = 3


def _fold(char: str) -> str | None:
    """Map a character to the ASCII letter it imitates, if any."""
    lowered = char.lower()
    if lowered in _CONFUSABLES:
        return _CONFUSABLES[lowered]
    if lowered in _LEET_DIGITS:
        return _LEET_DIGITS[lowered]
    if lowered in _LEET_SYMBOLS:
        return _LEET_SYMBOLS[lowered]
    base = "".join(c for c in unicodedata.normalize("NFKD", lowered) if not unicodedata.combining(c))
    if len(base) == 1 and base.isascii() and base.isalpha():
        return base
    return None


@dataclass(slots=True)
class _Glyph:
    char: str
    index: int
    plain: bool
    wildcard: bool = False
    digit: bool = False
    symbol: bool = False
    # Indices of combining marks that decorate this glyph
    marks: List[int] = field(default_factory=list)

    @property
    def indices(self) -> List[int]:
        return [self.index, *self.marks]


@dataclass(slots=True)
class _Token:
    glyphs: List[_Glyph]
    split: bool = False

    @property
    def start(self) -> int:
        return self.glyphs[0].index

    @property
    def end(self) -> int:
        return self.glyphs[-1].indices[-1] + 1

    @property
    def leading_symbols(self) -> int:
        count = 0
        for glyph in self.glyphs:
            if not glyph.symbol:
                break
            count += 1
        return count

    @property
    def folded(self) -> str:
        return "".join(g.char for g in self.glyphs)


@dataclass(slots=True)
class _Match:
    term: LexiconTerm
    glyphs: List[_Glyph]
    evasive: bool


@dataclass
class LexicalClassifier:
    """Word-list classifier that sees through common filter evasion."""

    lexicon: Lexicon = field(default_factory=Lexicon)

    def classify(self, text: str, settings: CensorSettings = GLASS_CENSOR_SETTINGS) -> ClassificationResult:
        """Censor ``text`` and report the content types found in it.

        Raises:
            ClassificationError: If ``text`` is not a string or is not
                encodable as UTF-8.
        """
        if not isinstance(text, str):
            raise ClassificationError(f"Expected text, got {type(text).__name__}")
        try:
            text.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise ClassificationError("Text is not valid Unicode") from exc

        matches = self._find_matches(text, settings)

        flags = ContentType.NONE
        found: List[ContentType] = []
        redacted: set[int] = set()
        for match in matches:
            types = match.term.types
            if match.evasive:
                types |= ContentType.EVASIVE
            found.append(types)
            flags |= types
            if not meets_threshold(match.term.types, settings.censor_threshold):
                continue
            keep_first = not meets_threshold(match.term.types, settings.censor_first_character_threshold)
            for offset, glyph in enumerate(match.glyphs):
                if offset == 0 and keep_first:
                    continue
                redacted.update(glyph.indices)

        if redacted:
            censored = "".join(
                settings.censor_replacement if index in redacted else char
                for index, char in enumerate(text)
            )
        else:
            censored = text

        if matches:
            logger.debug(
                "[CLASSIFY] %d match(es) (%s), %d character(s) redacted",
                len(matches), ", ".join(sorted({m.term.word for m in matches})), len(redacted),
            )
        return ClassificationResult(censored=censored, flags=flags, matches=tuple(found))

    # --------------------------
    # Tokenizing
    # --------------------------
    def _tokenize(self, text: str, settings: CensorSettings) -> List[_Token]:
        tokens: List[_Token] = []
        current: List[_Glyph] = []
        pending: List[_Glyph] = []
        # Set after an invisible character so the next letter counts as evasive
        hidden = False

        for index, char in enumerate(text):
            if unicodedata.category(char) == "Cf":
                hidden = hidden or bool(current)
            elif unicodedata.combining(char):
                if current and not pending:
                    current[-1].plain = False
                    current[-1].marks.append(index)
            elif char.isalnum():
                current.extend(pending)
                pending.clear()
                folded = _fold(char)
                if folded is None:
                    glyph = _Glyph(char.lower(), index, plain=not hidden)
                else:
                    glyph = _Glyph(
                        folded, index, plain=not hidden and char.lower() == folded, digit=char.isdigit(),
                    )
                current.append(glyph)
                hidden = False
            elif char in _WILDCARDS:
                # Markdown emphasis and hashtags wrap words; they hide nothing
                if not current and not pending:
                    continue
                if settings.ignore_self_censoring:
                    pending.append(_Glyph(_NEVER_MATCHES, index, plain=True))
                else:
                    pending.append(_Glyph("?", index, plain=False, wildcard=True))
            elif char in _LEET_SYMBOLS:
                pending.append(_Glyph(_LEET_SYMBOLS[char], index, plain=False, symbol=True))
            else:
                if current:
                    tokens.append(_Token(current))
                current = []
                pending = []
                hidden = False

        if current:
            tokens.append(_Token(current))
        return tokens

    def _split_runs(self, text: str, tokens: List[_Token]) -> List[_Token]:
        """Join runs of single letters like ``f u c k`` into one token."""
        joined: List[_Token] = []
        run: List[_Token] = []

        def flush() -> None:
            if len(run) >= _MIN_SPLIT_LETTERS:
                joined.append(_Token([t.glyphs[0] for t in run], split=True))
            run.clear()

        for token in tokens:
            if len(token.glyphs) != 1:
                flush()
                continue
            if run:
                gap = text[run[-1].end:token.start]
                if len(gap) > _MAX_SPLIT_GAP or "\n" in gap:
                    flush()
            run.append(token)
        flush()
        return joined

    # --------------------------
    # Matching
    # --------------------------
    @staticmethod
    def _match_at(glyphs: List[_Glyph], start: int, word: str) -> tuple[int, bool] | None:
        """Match ``word`` at ``start``; return (end, stretched) or None."""
        pos = start
        stretched = False
        concrete = 0

        for i, letter in enumerate(word):
            if pos >= len(glyphs):
                return None
            glyph = glyphs[pos]
            if glyph.wildcard:
                if i == 0:
                    return None
            elif glyph.char != letter:
                return None
            else:
                concrete += 1
            pos += 1

            following = word[i + 1] if i + 1 < len(word) else None
            if letter != following:
                while pos < len(glyphs) and not glyphs[pos].wildcard and glyphs[pos].char == letter:
                    pos += 1
                    stretched = True

        if concrete < min(2, len(word)):
            return None
        return pos, stretched

    def _inside_safe_word(self, token: _Token, start: int, end: int) -> bool:
        folded = token.folded
        for safe in self.lexicon.safe_words:
            offset = folded.find(safe)
            while offset != -1:
                if offset <= start and end <= offset + len(safe):
                    return True
                offset = folded.find(safe, offset + 1)
        return False

    def _find_matches(self, text: str, settings: CensorSettings) -> List[_Match]:
        tokens = self._tokenize(text, settings)
        tokens.extend(self._split_runs(text, tokens))

        matches: List[_Match] = []
        for token in tokens:
            glyphs = token.glyphs
            # Whole words may sit behind symbols that are not read as letters ("@kys")
            last_whole_word_start = token.leading_symbols
            for term in self.lexicon.terms:
                for start in range(len(glyphs)):
                    if term.whole_word and start > last_whole_word_start:
                        break
                    hit = self._match_at(glyphs, start, term.word)
                    if hit is None:
                        continue
                    end, stretched = hit
                    if term.whole_word and end != len(glyphs):
                        continue
                    if (
                        not term.whole_word
                        and not settings.ignore_false_positives
                        and self._inside_safe_word(token, start, end)
                    ):
                        continue
                    span = glyphs[start:end]
                    # Plain numbers such as "455" are not words
                    if all(g.digit for g in span):
                        continue
                    evasive = token.split or stretched or any(not g.plain for g in span)
                    matches.append(_Match(term=term, glyphs=span, evasive=evasive))
        return matches
