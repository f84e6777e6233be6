"""
Command-Line Interface for single simulated screens.

Loads an experiment YAML, runs one simulated screen and writes the guide and
gene tables as CSV. Importable so it can be wired up as a console entry point.
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from screen_sim.config import ExperimentConfig, load_experiment_config, settings
from screen_sim.config.defaults import DEFAULT_LOG_FORMAT
from screen_sim.exceptions import ScreenSimulationError
from screen_sim.experiment import ExperimentResult, run_experiment

logger = logging.getLogger(__name__)


def run_screen_from_config(config: ExperimentConfig, output_dir: Path) -> ExperimentResult:
    """Run the configured screen and write its result tables."""
    print(f"\n{'='*70}")
    print(f"Simulating screen: {config.name}")
    print(f"Setup: {config.setup}")
    print(f"Library: {config.design.num_genes} genes x {config.design.guides_per_gene} guides")
    print(f"Seed: {config.seed}")
    print(f"{'='*70}\n")

    result = run_experiment(
        config.setup,
        config.design,
        seed=config.seed,
        first_bin=config.first_bin,
        last_bin=config.last_bin,
    )

    output_dir.mkdir(parents=True, exist_ok=True)
    guides_path = output_dir / f"{config.name}_guides.csv"
    genes_path = output_dir / f"{config.name}_genes.csv"
    result.guide_data.to_csv(guides_path, index=False)
    result.gene_data.to_csv(genes_path, index=False)

    print(f"Guides: {guides_path}")
    print(f"Genes:  {genes_path}")
    if result.num_doublings >= 0:
        print(f"Doublings during transfection: {result.num_doublings}")
    for measure, score in result.scores.items():
        print(f"AUPRC ({measure}): {score:.4f}")
    return result


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Simulate a pooled CRISPR screen and analyze its read counts.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example:
  screen-sim-run --config config/growth_screen.yaml
  screen-sim-run --config my_screen.yaml --seed 7 --output results/
        """,
    )

    parser.add_argument(
        "--config",
        "-c",
        required=True,
        help="Path to YAML experiment configuration",
    )

    parser.add_argument(
        "--seed",
        "-s",
        type=int,
        help="Override the run seed from config",
    )

    parser.add_argument(
        "--output",
        "-o",
        default=None,
        help=f"Directory for result tables (default: {settings.output_dir})",
    )

    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Load config and validate without running",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format=DEFAULT_LOG_FORMAT)

    if not os.path.exists(args.config):
        print(f"Error: Config file not found: {args.config}", file=sys.stderr)
        return 1

    try:
        config = load_experiment_config(args.config)
        if args.seed is not None:
            config.seed = args.seed

        if args.dry_run:
            print(f"Config loaded successfully from: {args.config}")
            print(f"   Screen: {config.name} ({type(config.setup).__name__})")
            print(f"   Guides: {config.design.num_guides}")
            return 0

        run_screen_from_config(config, Path(args.output or settings.output_dir))
    except ScreenSimulationError as e:
        logger.error("Screen simulation failed: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
