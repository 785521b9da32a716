#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Unified runner for text-regression experiments.

- Run from project root.
- Imports modules from src/textreg (core, features, models, experiments).
- Supports running one model (svm/svm_hashing/rf/null) or all of them.
- Ctrl-C stops the grid search between folds; finished folds are kept.
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, Optional

# ---------------------------------------------------------------------
# Ensure we can import `textreg` without installing the package
# ---------------------------------------------------------------------
ROOT = Path(__file__).parent.resolve()
SRC_DIR = ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from textreg.experiments import ExperimentalPipeline  # noqa: E402
from textreg.models import get_factory_and_grid  # noqa: E402

MODELS = ["svm", "svm_hashing", "rf", "null"]


# -----------------------------
# Utilities
# -----------------------------
def _resolve_csv(data_dir: Optional[Path], csv_path: Optional[Path]) -> Path:
    """Locate the clean CSV from --csv or --data-dir (defaults to ROOT/data)."""
    if csv_path is not None:
        p = csv_path if csv_path.is_absolute() else (ROOT / csv_path)
        if not p.exists():
            raise FileNotFoundError(f"CSV not found: {p}")
        return p
    if data_dir is None:
        data_dir = ROOT / "data"
    candidates = sorted(data_dir.glob("*_clean.csv"))
    if not candidates:
        raise FileNotFoundError(
            f"Cannot find a *_clean.csv under {data_dir}. Run src/textreg/prepare_dataset.py "
            f"or pass --csv explicitly."
        )
    return candidates[0]


def _patch_grid(grid: List[Dict[str, Any]], args: argparse.Namespace) -> List[Dict[str, Any]]:
    """Override some grid fields from CLI flags without changing registry defaults."""
    patched: List[Dict[str, Any]] = []
    for g in grid:
        gg = dict(g)
        if args.method is not None:
            gg["method"] = args.method
        if args.num_buckets is not None and gg.get("method") == "hashing":
            gg["num_buckets"] = int(args.num_buckets)
        if args.stop_words:
            gg["stop_words"] = "english"
        if args.ngram_max is not None:
            gg["ngram_range"] = (1, int(args.ngram_max))
        if args.unsigned and gg.get("method") == "hashing":
            gg["signed"] = False
        if args.sublinear_tf and gg.get("method", "tfidf") == "tfidf":
            gg["sublinear_tf"] = True
        patched.append(gg)
    # the same override may collapse several configs into one
    unique = []
    for gg in patched:
        if gg not in unique:
            unique.append(gg)
    return unique


def _run_one(model: str, args: argparse.Namespace, csv_path: Path, cancel: threading.Event) -> Dict[str, Any]:
    print("============================================================")
    print(f"Grid search for: {model}")
    print("============================================================")
    print(f"Folds: {args.folds}, test size: {args.test_size}, fast: {args.fast}")

    _, grid = get_factory_and_grid(model, fast=args.fast)
    grid = _patch_grid(grid, args)

    pipeline = ExperimentalPipeline(
        csv_path=str(csv_path),
        results_dir=str(args.results_dir / model),
        model=model,
        fast=args.fast,
        folds=args.folds,
        test_size=args.test_size,
        random_state=args.seed,
        metric_set=args.metrics,
        target_metric=args.target_metric,
        tolerance_pct=args.tolerance,
        n_jobs=args.n_jobs,
        fold_jobs=args.fold_jobs,
        grid=grid,
        text_col=args.text_col,
        target_col=args.target_col,
        id_col=args.id_col,
        cancel_event=cancel,
    )

    with ThreadPoolExecutor(max_workers=1) as ex:
        fut = ex.submit(pipeline.run_complete_pipeline)
        try:
            return fut.result()
        except KeyboardInterrupt:
            print("\n[info] Interrupted: finishing the running folds and saving partial results...")
            cancel.set()
            return fut.result()


# -----------------------------
# Main
# -----------------------------
def main() -> None:
    ap = argparse.ArgumentParser(description="Run text-regression experiments from project root")
    ap.add_argument("--data-dir", type=Path, default=None, help="Directory containing *_clean.csv")
    ap.add_argument("--csv", type=Path, default=None, help="Explicit path to a clean CSV")
    ap.add_argument("--results-dir", type=Path, default=Path("results"))
    ap.add_argument("--model", choices=MODELS + ["all"], default="svm")
    ap.add_argument("--folds", type=int, default=10)
    ap.add_argument("--test-size", type=float, default=0.25)
    ap.add_argument("--seed", type=int, default=42)
    ap.add_argument("--fast", action="store_true")
    ap.add_argument("--metrics", nargs="+", default=["rmse", "rsq", "mae", "mape"])
    ap.add_argument("--target-metric", default="mae")
    ap.add_argument("--tolerance", type=float, default=2.0, help="Accepted percent loss for a simpler config")
    ap.add_argument("--n-jobs", type=int, default=1, help="Worker threads across configurations")
    ap.add_argument("--fold-jobs", type=int, default=1, help="Worker threads across folds")
    ap.add_argument("--text-col", default="text")
    ap.add_argument("--target-col", default="target")
    ap.add_argument("--id-col", default=None)
    ap.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    # Optional overrides
    ap.add_argument("--method", choices=["tfidf", "hashing"], default=None, help="Force the feature method")
    ap.add_argument("--num-buckets", type=int, default=None, help="Hashing width (with --method hashing)")
    ap.add_argument("--stop-words", action="store_true", help="Remove English stop words")
    ap.add_argument("--ngram-max", type=int, default=None, help="Use n-grams from 1 to N")
    ap.add_argument("--unsigned", action="store_true", help="Unsigned feature hashing")
    ap.add_argument("--sublinear-tf", action="store_true", help="1 + log(tf) term weighting")

    args = ap.parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s %(name)s %(levelname)s %(message)s")

    csv_path = _resolve_csv(args.data_dir, args.csv)
    print(f"[data] {csv_path}")

    cancel = threading.Event()
    models = [args.model] if args.model != "all" else MODELS
    for m in models:
        if cancel.is_set():
            break
        _run_one(m, args, csv_path, cancel)


if __name__ == "__main__":
    main()
