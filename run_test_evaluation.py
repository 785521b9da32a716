#!/usr/bin/env python
"""
Re-run the held-out test evaluation for the configuration selected by a
previous grid search (results/<model>/experiment_results_*.json).
"""
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.resolve() / "src"))

from textreg.experiments import TestEvaluator  # noqa: E402
from textreg.experiments.reporting import save_json  # noqa: E402
from textreg.models import get_factory_and_grid  # noqa: E402
from textreg.prepare_dataset import load_corpus  # noqa: E402


def main():
    import argparse

    parser = argparse.ArgumentParser(description="Evaluate the selected configuration on the test split")
    parser.add_argument("--csv", required=True, help="Path to the clean CSV used for the grid search")
    parser.add_argument("--results-dir", default="results/svm", help="Directory with experiment_results_*.json")
    parser.add_argument("--results-file", default=None, help="Specific results file (default: most recent)")
    parser.add_argument("--model", default="svm")
    parser.add_argument("--test-size", type=float, default=0.25)
    parser.add_argument("--random-state", type=int, default=42)
    parser.add_argument("--text-col", default="text")
    parser.add_argument("--target-col", default="target")

    args = parser.parse_args()

    print("=" * 80)
    print("TEST SET EVALUATION")
    print("=" * 80)

    results_dir = Path(args.results_dir)
    if args.results_file:
        results_path = results_dir / args.results_file
        if not results_path.exists():
            print(f"Specified results file not found: {results_path}")
            return
    else:
        experiment_files = list(results_dir.glob("experiment_results_*.json"))
        if not experiment_files:
            print(f"No experiment results found in {results_dir}.")
            print("Please run the grid search first.")
            return
        results_path = max(experiment_files, key=lambda p: p.stat().st_mtime)

    print(f"Loading grid results from: {results_path}")
    with open(results_path, "r", encoding="utf-8") as f:
        saved = json.load(f)

    selection = saved.get("selection")
    if not selection:
        print("Results file has no selected configuration (was the grid search cancelled?).")
        return
    config = selection["selected"]
    if "ngram_range" in config and config["ngram_range"] is not None:
        config["ngram_range"] = tuple(config["ngram_range"])
    print(f"Selected configuration: {config}")

    corpus = load_corpus(args.csv, args.text_col, args.target_col)
    factory, _ = get_factory_and_grid(args.model)

    evaluator = TestEvaluator(test_size=args.test_size, random_state=args.random_state)
    evaluator.split_data(corpus)
    res = evaluator.evaluate_config(config, factory)

    table = evaluator.create_comparison_table({args.model: res})
    print("\n" + "=" * 80)
    print("FINAL TEST SET RESULTS")
    print("=" * 80)
    print(table.round(4).T)

    output_path = save_json(res, results_dir / "test_evaluation_results.json")
    print(f"\nTest results saved to: {output_path}")


if __name__ == "__main__":
    main()
