import pytest

from textreg.errors import InvalidConfigurationError
from textreg.features.tokenizer import Tokenizer, TokenizerOptions, resolve_stop_words


class TestTokenizer:
    def test_words_lowercased_keep_apostrophes(self):
        assert Tokenizer().tokenize("The Court's RULING, 1954.") == ["the", "court's", "ruling", "1954"]

    def test_lowercase_off(self):
        toks = Tokenizer(TokenizerOptions(lowercase=False)).tokenize("Brown v Board")
        assert toks == ["Brown", "v", "Board"]

    def test_english_stop_words(self):
        toks = Tokenizer(TokenizerOptions(stop_words="english")).tokenize("the court and the law")
        assert toks == ["court", "law"]

    def test_explicit_stop_words(self):
        toks = Tokenizer(TokenizerOptions(stop_words={"law"})).tokenize("the court and the law")
        assert "law" not in toks

    def test_bigrams_after_stop_word_removal(self):
        opts = TokenizerOptions(ngram_range=(1, 2), stop_words="english")
        assert Tokenizer(opts).tokenize("the judge wrote opinions") == [
            "judge",
            "wrote",
            "opinions",
            "judge wrote",
            "wrote opinions",
        ]

    def test_only_bigrams(self):
        assert Tokenizer(TokenizerOptions(ngram_range=(2, 2))).tokenize("a b c") == ["a b", "b c"]

    def test_normalizer_runs_first(self):
        opts = TokenizerOptions(normalizer=lambda s: s.replace("&amp;", "and"))
        assert Tokenizer(opts).tokenize("law &amp; order") == ["law", "and", "order"]

    def test_empty_text(self):
        assert Tokenizer(TokenizerOptions(ngram_range=(1, 3))).tokenize("") == []

    def test_tokenize_all(self):
        assert Tokenizer().tokenize_all(["a b", "c"]) == [["a", "b"], ["c"]]

    @pytest.mark.parametrize("rng", [(0, 1), (2, 1)])
    def test_bad_ngram_range(self, rng):
        with pytest.raises(InvalidConfigurationError):
            Tokenizer(TokenizerOptions(ngram_range=rng))

    def test_unknown_stop_list(self):
        with pytest.raises(InvalidConfigurationError):
            resolve_stop_words("klingon")

    def test_no_stop_words(self):
        assert resolve_stop_words(None) == frozenset()
