# extract_features.py
# Fit a feature pipeline on a clean CSV (training split only) and save the
# matrices plus the fitted vocabulary so they can be inspected or reused.
import argparse
import json
import sys
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.resolve() / "src"))

from textreg.core import targets  # noqa: E402
from textreg.experiments import initial_split  # noqa: E402
from textreg.features import FeatureConfig, FeaturePipeline, TokenizerOptions  # noqa: E402
from textreg.prepare_dataset import load_corpus  # noqa: E402


def do_extract(csv_path, out_dir, config: FeatureConfig, test_size=0.25, seed=42, text_col="text", target_col="target"):
    """
    Writes:
      <out_dir>/<method>_train.npy, <method>_test.npy
      <out_dir>/<method>_targets_train.npy, <method>_targets_test.npy
      <out_dir>/<method>_meta.json (vocabulary for tf-idf)
    """
    corpus = load_corpus(csv_path, text_col, target_col)
    train, test = initial_split(corpus, test_size=test_size, random_state=seed)

    print(f"[{config.method}] fitting on {len(train)} training documents...")
    fitted = FeaturePipeline(config).fit(train)
    X_train = fitted.transform(train)
    X_test = fitted.transform(test)

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    np.save(out_dir / f"{config.method}_train.npy", X_train)
    np.save(out_dir / f"{config.method}_test.npy", X_test)
    np.save(out_dir / f"{config.method}_targets_train.npy", targets(train))
    np.save(out_dir / f"{config.method}_targets_test.npy", targets(test))

    meta = {
        "method": config.method,
        "n_columns": fitted.n_columns,
        "train_rows": len(train),
        "test_rows": len(test),
        "normalized": fitted.stats is not None,
    }
    if fitted.vocabulary is not None:
        meta["vocabulary"] = fitted.vocabulary.to_dict()
        meta["document_frequency"] = dict(zip(fitted.vocabulary.tokens, fitted.idf_table.document_frequency))
    else:
        meta["num_buckets"] = config.num_buckets
        meta["signed"] = config.signed
    (out_dir / f"{config.method}_meta.json").write_text(json.dumps(meta, ensure_ascii=False, indent=2), encoding="utf-8")

    print(f"[{config.method}] done: train {X_train.shape}, test {X_test.shape} -> {out_dir}")


def _parse_args():
    ap = argparse.ArgumentParser()
    ap.add_argument("--csv", required=True, help="Path to the clean CSV")
    ap.add_argument("--outdir", default="", help="Output directory (default: features/ next to the CSV)")
    ap.add_argument("--method", required=True, choices=["tfidf", "hashing"])
    ap.add_argument("--max-tokens", type=int, default=1000)
    ap.add_argument("--num-buckets", type=int, default=2**10)
    ap.add_argument("--unsigned", action="store_true")
    ap.add_argument("--no-normalize", action="store_true")
    ap.add_argument("--stop-words", action="store_true")
    ap.add_argument("--ngram-max", type=int, default=1)
    ap.add_argument("--test-size", type=float, default=0.25)
    ap.add_argument("--seed", type=int, default=42)
    ap.add_argument("--text-col", default="text")
    ap.add_argument("--target-col", default="target")
    return ap.parse_args()


if __name__ == "__main__":
    args = _parse_args()
    csv_path = Path(args.csv)
    out_dir = Path(args.outdir) if args.outdir else csv_path.parent / "features"

    config = FeatureConfig(
        method=args.method,
        max_tokens=args.max_tokens,
        num_buckets=args.num_buckets,
        signed=not args.unsigned,
        normalize=not args.no_normalize,
        tokenizer=TokenizerOptions(
            ngram_range=(1, args.ngram_max),
            stop_words="english" if args.stop_words else None,
        ),
    )
    do_extract(csv_path, out_dir, config, args.test_size, args.seed, args.text_col, args.target_col)
