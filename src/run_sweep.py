"""Command line interface to sweep the setup queue over the utilization."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterable, List, Sequence

import pandas as pd
from tqdm import tqdm

from plots import plot_all
from warmup_queue import AggregatedRecord, QueueModelError, get_sweep, scenarios, sweep, utilization_grid

logger = logging.getLogger(__name__)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compare simulated and theoretical metrics of a queue with setup times."
    )
    parser.add_argument(
        "--family",
        type=str,
        choices=["exp", "erlang", "both"],
        default="both",
        help="Service-time family to sweep.",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=scenarios.DEFAULT_BATCH_SIZE,
        help="Replications per configuration.",
    )
    parser.add_argument(
        "--clients",
        type=int,
        default=scenarios.DEFAULT_N_CLIENTS,
        help="Arrivals per replication.",
    )
    parser.add_argument("--lam", type=float, default=scenarios.DEFAULT_LAMBDA, help="Arrival rate.")
    parser.add_argument("--theta", type=float, default=scenarios.DEFAULT_THETA, help="Setup rate.")
    parser.add_argument(
        "--k",
        type=int,
        default=scenarios.DEFAULT_ERLANG_SHAPE,
        help="Shape of the Erlang service time.",
    )
    parser.add_argument("--rho-start", type=float, default=scenarios.DEFAULT_RHO_START)
    parser.add_argument("--rho-stop", type=float, default=scenarios.DEFAULT_RHO_STOP)
    parser.add_argument("--rho-points", type=int, default=scenarios.DEFAULT_RHO_POINTS)
    parser.add_argument("--seed", type=int, default=scenarios.DEFAULT_SEED, help="Master random seed.")
    parser.add_argument(
        "--processes",
        type=int,
        default=None,
        help="Worker processes per batch (default: all cores).",
    )
    parser.add_argument(
        "--outputs",
        type=Path,
        default=Path("outputs/sweep.csv"),
        help="Path where the CSV summary will be written.",
    )
    parser.add_argument(
        "--reports-dir",
        type=Path,
        default=None,
        help="Directory where figures are written (no figures when omitted).",
    )
    parser.add_argument(
        "--skip-failed",
        action="store_true",
        help="Skip configurations whose batch fails instead of aborting.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def records_to_frame(records: Iterable[AggregatedRecord]) -> pd.DataFrame:
    """One row per configuration, in the order of the records."""
    return pd.DataFrame([r.as_dict() for r in records])


def acceptance_rates(df: pd.DataFrame) -> pd.DataFrame:
    """Share of configurations keeping H0, per family and metric."""
    columns = ["h0_avg_stay", "h0_p_off", "h0_p_setup"]
    if df.empty:
        return pd.DataFrame(columns=["family"] + columns)
    return df.groupby("family", sort=False)[columns].mean().reset_index()


def run_family(family: str, args: argparse.Namespace) -> List[AggregatedRecord]:
    rhos = utilization_grid(args.rho_start, args.rho_stop, args.rho_points)
    configs = get_sweep(family, rhos, lam=args.lam, theta=args.theta, k=args.k)
    return sweep(
        tqdm(configs, desc=family, unit="rho"),
        batch_size=args.batch_size,
        n_clients=args.clients,
        seed=args.seed,
        processes=args.processes,
        skip_failed=args.skip_failed,
    )


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    families = ["exp", "erlang"] if args.family == "both" else [args.family]
    records: List[AggregatedRecord] = []
    try:
        for family in families:
            records.extend(run_family(family, args))
    except QueueModelError as exc:
        raise SystemExit(f"Sweep aborted: {exc}") from exc

    if not records:
        raise SystemExit("No configuration produced a record; check the parameters.")

    df = records_to_frame(records)
    args.outputs.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(args.outputs, index=False)
    logger.info("Wrote %d records to %s", len(df), args.outputs.resolve())

    print("\nH0 acceptance rate (|t| <= 1.96):")
    for _, row in acceptance_rates(df).iterrows():
        print(
            f"  {row['family']:<7} E[S]: {row['h0_avg_stay']:>6.1%}  "
            f"P(off): {row['h0_p_off']:>6.1%}  P(setup): {row['h0_p_setup']:>6.1%}"
        )

    if args.reports_dir is not None:
        written = plot_all(df, args.reports_dir)
        print(f"\nFigures saved to {args.reports_dir.resolve()} ({len(written)} files)")

    print(f"\nResults saved to {args.outputs.resolve()}")


if __name__ == "__main__":
    main()
