# tokenizer.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS

from ..errors import InvalidConfigurationError

DEFAULT_TOKEN_PATTERN = r"(?u)\b\w+(?:['’]\w+)?\b"

StopWords = Union[None, str, Iterable[str]]


def resolve_stop_words(stop_words: StopWords) -> FrozenSet[str]:
    if stop_words is None:
        return frozenset()
    if isinstance(stop_words, str):
        if stop_words.lower() == "english":
            return frozenset(ENGLISH_STOP_WORDS)
        raise InvalidConfigurationError(f"unknown stop word list: {stop_words!r}")
    return frozenset(stop_words)


@dataclass(frozen=True)
class TokenizerOptions:
    """
    params:
      - ngram_range: (min_n, max_n), n-grams are joined with a single space
      - stop_words: None, "english" or an explicit collection; removed
        after tokenization and before n-grams are formed
      - normalizer: optional text -> text function run before tokenization
      - lowercase: fold case after normalization
    """

    ngram_range: Tuple[int, int] = (1, 1)
    stop_words: StopWords = None
    normalizer: Optional[Callable[[str], str]] = None
    lowercase: bool = True
    token_pattern: str = DEFAULT_TOKEN_PATTERN


class Tokenizer:
    """Stateless word tokenizer with optional stop-word removal and n-grams."""

    def __init__(self, options: Optional[TokenizerOptions] = None):
        self.options = options or TokenizerOptions()
        lo, hi = self.options.ngram_range
        if lo < 1 or hi < lo:
            raise InvalidConfigurationError(
                f"ngram_range must satisfy 1 <= min_n <= max_n, got {self.options.ngram_range}"
            )
        self._pattern = re.compile(self.options.token_pattern)
        self._stop = resolve_stop_words(self.options.stop_words)

    def words(self, text: str) -> List[str]:
        if self.options.normalizer is not None:
            text = self.options.normalizer(text)
        if self.options.lowercase:
            text = text.lower()
        toks = self._pattern.findall(text)
        if self._stop:
            toks = [t for t in toks if t not in self._stop]
        return toks

    def tokenize(self, text: str) -> List[str]:
        words = self.words(text)
        lo, hi = self.options.ngram_range
        if (lo, hi) == (1, 1):
            return words

        out: List[str] = []
        for n in range(lo, hi + 1):
            for i in range(len(words) - n + 1):
                out.append(" ".join(words[i : i + n]))
        return out

    def tokenize_all(self, docs: Sequence[str]) -> List[List[str]]:
        return [self.tokenize(t) for t in docs]
