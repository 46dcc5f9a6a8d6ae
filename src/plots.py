"""Figures comparing simulated metrics against theory along the utilization."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Sequence

import matplotlib.pyplot as plt
import pandas as pd

from warmup_queue import HYPOTHESIS_INTERVAL

# column prefix -> (simulated column, theoretical column, t column, H0 column, label)
METRIC_COLUMNS = {
    "avg_stay": ("avg_stay_time", "theoretical_avg_stay", "t_avg_stay", "h0_avg_stay", "E[S]"),
    "p_off": ("probability_p_off", "theoretical_p_off", "t_p_off", "h0_p_off", "P(off)"),
    "p_setup": (
        "probability_p_setup",
        "theoretical_p_setup",
        "t_p_setup",
        "h0_p_setup",
        "P(setup)",
    ),
}


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate plots from sweep results.")
    parser.add_argument(
        "--results",
        type=Path,
        default=Path("outputs/sweep.csv"),
        help="CSV produced by run_sweep.",
    )
    parser.add_argument(
        "--reports-dir",
        type=Path,
        default=Path("reports"),
        help="Directory where PNG files will be saved.",
    )
    return parser.parse_args(argv)


def load_results(path: Path) -> pd.DataFrame:
    if not path.exists():
        raise FileNotFoundError(f"Results file not found: {path}")
    df = pd.read_csv(path)
    if df.empty:
        raise ValueError("Results file is empty. Run the sweep first.")
    return df


def plot_metric(df: pd.DataFrame, metric: str, title: str, out: Path) -> None:
    """
    Plot one metric of one family against rho.

    The theoretical curve is a line; simulated points are green when H0 is
    kept and red when it is rejected.
    """
    sim_col, theory_col, _, h0_col, label = METRIC_COLUMNS[metric]
    df = df.sort_values("rho")
    kept = df[df[h0_col].astype(bool)]
    rejected = df[~df[h0_col].astype(bool)]

    fig, ax = plt.subplots(figsize=(8, 5))
    ax.plot(df["rho"], df[theory_col], color="magenta", label=f"theoretical {label}")
    ax.scatter(kept["rho"], kept[sim_col], s=12, color="green", label=f"{label} verifies H0")
    ax.scatter(rejected["rho"], rejected[sim_col], s=12, color="red", label=f"{label} rejects H0")
    ax.set_xlim(0.0, 1.0)
    ax.set_xlabel("rho")
    ax.set_ylabel(label)
    ax.set_title(title)
    ax.legend(loc="best")
    fig.tight_layout()
    fig.savefig(out, dpi=150)
    plt.close(fig)


def plot_all(df: pd.DataFrame, reports_dir: Path) -> List[Path]:
    """Write one figure per (family, metric) pair plus the test-statistic overview."""
    reports_dir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []
    for family, group in df.groupby("family", sort=False):
        for metric, columns in METRIC_COLUMNS.items():
            out = reports_dir / f"{family}_{metric}_by_rho.png"
            plot_metric(group, metric, f"{columns[4]} by rho ({family} service)", out)
            written.append(out)
    out = reports_dir / "test_statistics.png"
    plot_test_statistics(df, out)
    written.append(out)
    return written


def plot_test_statistics(df: pd.DataFrame, out: Path, threshold: float = HYPOTHESIS_INTERVAL) -> None:
    """Scatter of every test statistic with the acceptance band."""
    fig, ax = plt.subplots(figsize=(8, 4))
    for columns in METRIC_COLUMNS.values():
        ax.scatter(df["rho"], df[columns[2]], s=10, label=columns[4])
    ax.axhline(threshold, color="gray", linestyle="--")
    ax.axhline(-threshold, color="gray", linestyle="--")
    ax.set_xlabel("rho")
    ax.set_ylabel("t")
    ax.set_title("Test statistics by rho")
    ax.legend()
    fig.tight_layout()
    fig.savefig(out, dpi=150)
    plt.close(fig)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    df = load_results(args.results)
    written = plot_all(df, args.reports_dir)
    print(f"Figures saved to {args.reports_dir.resolve()} ({len(written)} files)")


if __name__ == "__main__":
    main()
