#!/usr/bin/env python3
# scripts/summarize_repair.py
# Compare `agen8 bench` CSVs produced without and with --repair.

import argparse
import glob
import os

import pandas as pd

REQUIRED = ["id", "valid", "errors", "warnings", "disconnected"]


def load_csv(path: str) -> pd.DataFrame:
    """Load a bench CSV and check the columns we aggregate over."""
    df = pd.read_csv(path)
    for col in REQUIRED:
        if col not in df.columns:
            raise ValueError(f"{path} is missing required column '{col}'")
    df["valid"] = df["valid"].astype(bool)
    return df[REQUIRED]


def share_improved(df_raw: pd.DataFrame, df_fixed: pd.DataFrame) -> float:
    """Fraction of workflows that were invalid as-is and valid after repair."""
    merged = df_raw.merge(df_fixed, on="id", suffixes=("_raw", "_fixed"))
    if merged.empty:
        return 0.0
    improved = ((~merged["valid_raw"]) & merged["valid_fixed"]).sum()
    return improved / len(merged)


def summarize(name: str, df_raw: pd.DataFrame, df_fixed: pd.DataFrame) -> pd.DataFrame:
    def r2(x):
        return round(float(x), 2)

    rows = []
    for mode, df in (("as-is", df_raw), ("repaired", df_fixed)):
        rows.append([
            name,
            mode,
            len(df),
            r2(df["valid"].mean() * 100.0) if len(df) else 0.0,
            r2(df["errors"].mean()) if len(df) else 0.0,
            r2(df["warnings"].mean()) if len(df) else 0.0,
            r2(df["disconnected"].mean()) if len(df) else 0.0,
            None,
        ])
    rows[-1][-1] = r2(share_improved(df_raw, df_fixed) * 100.0)

    return pd.DataFrame(
        rows,
        columns=[
            "Set",
            "Mode",
            "workflows",
            "% valid",
            "mean(errors)",
            "mean(warnings)",
            "mean(disconnected)",
            "% fixed by repair",
        ],
    )


def discover_pairs(base_dir: str):
    """
    Find pairs like:
        genllm.csv <-> genllm_repaired.csv
    """
    files = glob.glob(os.path.join(base_dir, "*.csv"))
    print(f"[debug] Found CSV files: {', '.join(os.path.basename(f) for f in files) or '<none>'}")

    pairs = {}
    for f in files:
        base, _ = os.path.splitext(os.path.basename(f))
        if base.endswith("_repaired"):
            pairs.setdefault(base[: -len("_repaired")], {})["fixed"] = f
        else:
            pairs.setdefault(base, {})["raw"] = f
    return pairs


def main():
    parser = argparse.ArgumentParser(description="Summarize validation results before/after auto-repair.")
    parser.add_argument("--base-dir", default="experiments/results", help="Directory containing bench CSV files")
    parser.add_argument("--out", default="repair_summary.csv", help="Output CSV for the summary")
    args = parser.parse_args()

    all_rows = []
    for key, paths in sorted(discover_pairs(args.base_dir).items()):
        if "raw" not in paths or "fixed" not in paths:
            continue
        print(f"[info] {key}: {paths['raw']} vs {paths['fixed']}")
        all_rows.append(summarize(key, load_csv(paths["raw"]), load_csv(paths["fixed"])))

    if not all_rows:
        print("[warn] No (X.csv, X_repaired.csv) pairs found in", args.base_dir)
        return

    final = pd.concat(all_rows, ignore_index=True)
    print(final.to_string(index=False))
    final.to_csv(args.out, index=False)
    print(f"Saved -> {args.out}")


if __name__ == "__main__":
    main()
