# corpus.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class Document:
    """One raw document and the continuous value to predict for it."""

    id: Any
    text: str
    target: float
    metadata: Mapping[str, Any] = field(default_factory=dict)


Corpus = Tuple[Document, ...]


def make_corpus(docs: Iterable[Document]) -> Corpus:
    return tuple(docs)


def texts(corpus: Sequence[Document]) -> List[str]:
    return [d.text for d in corpus]


def targets(corpus: Sequence[Document]) -> np.ndarray:
    return np.asarray([d.target for d in corpus], dtype=float)


def subset(corpus: Sequence[Document], indices: Sequence[int]) -> Corpus:
    return tuple(corpus[i] for i in indices)


def corpus_from_frame(
    df: pd.DataFrame,
    text_col: str = "text",
    target_col: str = "target",
    id_col: Optional[str] = None,
) -> Corpus:
    """
    Build a corpus from a DataFrame.

    Columns other than text/target/id are kept as per-document metadata.
    When ``id_col`` is None the row position is used as the id.
    """
    missing = [c for c in (text_col, target_col) if c not in df.columns]
    if missing:
        raise KeyError(f"DataFrame is missing required columns: {missing}")

    extra = [c for c in df.columns if c not in (text_col, target_col, id_col)]
    docs = []
    for pos, row in enumerate(df.to_dict(orient="records")):
        meta: Dict[str, Any] = {c: row[c] for c in extra}
        docs.append(
            Document(
                id=row[id_col] if id_col is not None else pos,
                text=str(row[text_col]),
                target=float(row[target_col]),
                metadata=meta,
            )
        )
    return tuple(docs)


def corpus_to_frame(corpus: Sequence[Document]) -> pd.DataFrame:
    rows = []
    for d in corpus:
        row = {"id": d.id, "text": d.text, "target": d.target}
        row.update(d.metadata)
        rows.append(row)
    return pd.DataFrame(rows)
