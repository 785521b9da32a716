#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Prepare a text-regression dataset from a raw CSV:
- Clean text (HTML entities/tags stripped, Unicode NFKC, whitespace collapsed)
- Coerce the target column to float, drop rows missing text or target
- Drop duplicate (text, target) rows
- Save to <outdir>/<name>_clean.csv

This module provides functions to prepare the dataset programmatically and
to load a cleaned CSV as a corpus.
"""
from __future__ import annotations

import html
import json
import re
import unicodedata
from pathlib import Path
from typing import Optional

import pandas as pd

from .core.corpus import Corpus, corpus_from_frame

TAG_RE = re.compile(r"<[^>]+>")
WS_RE = re.compile(r"\s+")


def strip_control_chars(s: str) -> str:
    return "".join(ch for ch in s if ch.isprintable() or ch.isspace())


def nfkc(text: str) -> str:
    return unicodedata.normalize("NFKC", text)


def normalize_text(text: str, lowercase: bool = False) -> str:
    s = str(text)
    s = html.unescape(s).replace("<br />", " ")
    s = TAG_RE.sub(" ", s)
    s = nfkc(s)
    if lowercase:
        s = s.lower()
    s = strip_control_chars(s)
    s = WS_RE.sub(" ", s).strip()
    return s


def prepare_dataset(
    src_path: str | Path,
    outdir: str | Path = "data",
    text_col: str = "text",
    target_col: str = "target",
    lowercase: bool = False,
) -> dict:
    """
    Prepare a dataset from a raw CSV file.

    Args:
        src_path: Path to the raw CSV
        outdir: Output directory for processed files
        text_col: Column holding the document text
        target_col: Column holding the continuous target
        lowercase: Lowercase text during cleaning

    Returns:
        Dictionary with metadata about the processing
    """
    src = Path(src_path)
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    df = pd.read_csv(src)
    missing = [c for c in (text_col, target_col) if c not in df.columns]
    if missing:
        raise KeyError(f"{src} is missing columns {missing}; found {list(df.columns)}")

    before = len(df)
    df[target_col] = pd.to_numeric(df[target_col], errors="coerce")
    df = df.dropna(subset=[text_col, target_col]).copy()
    df[text_col] = df[text_col].map(lambda t: normalize_text(t, lowercase=lowercase))
    df = df[df[text_col].str.len() > 0]
    df = df.drop_duplicates(subset=[text_col, target_col]).reset_index(drop=True)
    after = len(df)

    clean_path = outdir / f"{src.stem.replace(' ', '_').lower()}_clean.csv"
    df.to_csv(clean_path, index=False, encoding="utf-8")

    meta = {
        "src": str(src),
        "out_clean": str(clean_path),
        "dropped_rows": before - after,
        "final_rows": int(after),
        "target_range": [float(df[target_col].min()), float(df[target_col].max())] if after else None,
        "zero_targets": int((df[target_col] == 0).sum()),
    }
    return meta


def load_corpus(
    csv_path: str | Path,
    text_col: str = "text",
    target_col: str = "target",
    id_col: Optional[str] = None,
) -> Corpus:
    """Read a (clean) CSV into a corpus; extra columns become metadata."""
    csv_path = Path(csv_path)
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV not found: {csv_path}")
    df = pd.read_csv(csv_path)
    return corpus_from_frame(df, text_col=text_col, target_col=target_col, id_col=id_col)


def main():
    """CLI interface."""
    import argparse

    parser = argparse.ArgumentParser()
    parser.add_argument("--src", required=True, help="Path to raw CSV")
    parser.add_argument("--outdir", default="data", help="Output root directory")
    parser.add_argument("--text-col", default="text")
    parser.add_argument("--target-col", default="target")
    parser.add_argument("--lowercase", action="store_true")

    args = parser.parse_args()

    meta = prepare_dataset(
        src_path=args.src,
        outdir=args.outdir,
        text_col=args.text_col,
        target_col=args.target_col,
        lowercase=args.lowercase,
    )

    print(json.dumps(meta, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
