# reporting.py
import json
from pathlib import Path
from typing import Any, Dict

import numpy as np
import pandas as pd


def export_summary_table(df: pd.DataFrame, save_dir: Path, name: str = "model_summary"):
    save_dir = Path(save_dir)
    save_dir.mkdir(parents=True, exist_ok=True)
    df.to_csv(save_dir / f"{name}.csv", index=False)
    (save_dir / f"{name}.md").write_text(
        df.to_markdown(index=False, floatfmt=".4f"), encoding="utf-8"
    )


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, pd.DataFrame):
        return value.to_dict(orient="records")
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    return value


def save_json(results: Dict[str, Any], path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(_to_jsonable(results), f, indent=2, sort_keys=True, ensure_ascii=False, default=str)
    return path


def format_summary(df: pd.DataFrame, metric_cols, title: str = "GRID SUMMARY (mean over folds)") -> str:
    """Fixed-width console table, one row per configuration."""
    lines = [title, "=" * 60]
    header = f"{'Config':40} | " + " | ".join(f"{c:>10}" for c in metric_cols)
    lines.append(header)
    lines.append("-" * len(header))

    def fmt(x):
        return f"{x:>10.4f}" if isinstance(x, (int, float)) and not pd.isna(x) else f"{'NA':>10}"

    config_cols = [c for c in df.columns if c not in metric_cols and not c.startswith("std_err_")]
    config_cols = [c for c in config_cols if c not in ("error", "n_excluded")]
    for _, row in df.iterrows():
        label = ", ".join(f"{c}={row[c]}" for c in config_cols)
        lines.append(f"{label[:40]:40} | " + " | ".join(fmt(row[c]) for c in metric_cols))
    lines.append("=" * 60)
    return "\n".join(lines)
