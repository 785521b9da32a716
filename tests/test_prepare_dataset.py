import pandas as pd
import pytest

from textreg.prepare_dataset import load_corpus, normalize_text, prepare_dataset


def write_raw(path):
    pd.DataFrame(
        {
            "text": [
                "The&nbsp;Court <b>held</b>",
                "The&nbsp;Court <b>held</b>",
                "Dissent  filed\n\nlater",
                None,
                "Per curiam",
                "Unknown year",
            ],
            "target": ["1954", "1954", "1962", "1970", "0", "n/a"],
            "court": ["scotus", "scotus", "scotus", "scotus", "scotus", "state"],
        }
    ).to_csv(path, index=False)
    return path


class TestNormalizeText:
    def test_strips_tags_entities_and_whitespace(self):
        assert normalize_text("A &amp; B<br />C  <i>d</i>") == "A & B C d"

    def test_nfkc_and_lowercase(self):
        assert normalize_text("ＦＵＬＬ width", lowercase=True) == "full width"

    def test_control_characters_removed(self):
        assert normalize_text("a\x00b\x07c") == "abc"


class TestPrepareDataset:
    def test_clean_csv_and_metadata(self, tmp_path):
        src = write_raw(tmp_path / "Raw Opinions.csv")
        meta = prepare_dataset(src, outdir=tmp_path / "data")

        assert meta["out_clean"].endswith("raw_opinions_clean.csv")
        assert meta["final_rows"] == 3
        assert meta["dropped_rows"] == 3
        assert meta["zero_targets"] == 1
        assert meta["target_range"] == [0.0, 1962.0]

        df = pd.read_csv(meta["out_clean"])
        assert df["text"].tolist() == ["The Court held", "Dissent filed later", "Per curiam"]

    def test_missing_columns(self, tmp_path):
        src = tmp_path / "raw.csv"
        pd.DataFrame({"body": ["x"], "year": [1]}).to_csv(src, index=False)
        with pytest.raises(KeyError):
            prepare_dataset(src, outdir=tmp_path)


class TestLoadCorpus:
    def test_rows_become_documents(self, tmp_path):
        meta = prepare_dataset(write_raw(tmp_path / "raw.csv"), outdir=tmp_path)
        corpus = load_corpus(meta["out_clean"])
        assert len(corpus) == 3
        assert corpus[0].id == 0
        assert corpus[0].target == 1954.0
        assert corpus[0].metadata == {"court": "scotus"}

    def test_id_column(self, tmp_path):
        path = tmp_path / "clean.csv"
        pd.DataFrame({"case": ["a1", "b2"], "text": ["x", "y"], "target": [1.0, 2.0]}).to_csv(path, index=False)
        corpus = load_corpus(path, id_col="case")
        assert [d.id for d in corpus] == ["a1", "b2"]
        assert corpus[0].metadata == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_corpus(tmp_path / "nope.csv")
