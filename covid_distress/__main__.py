"""
Distress Analysis Runner
========================

Command-line interface for the distress analysis pipeline.

Usage:
    # List available stages
    python -m covid_distress --list

    # Run everything with default inputs under data/
    python -m covid_distress

    # Run one stage and its prerequisites
    python -m covid_distress -a compare

    # Custom inputs plus optional tables and network graph
    python -m covid_distress --observations obs.csv --items items.csv \\
        --output results/ --export-tables --export-graph
"""

from __future__ import annotations

import sys
if sys.platform.startswith("win") and hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding='utf-8')

import argparse
from pathlib import Path
from typing import Optional


def main(args: Optional[list] = None) -> int:
    """Main entry point for the analysis CLI."""

    parser = argparse.ArgumentParser(
        prog='python -m covid_distress',
        description='COVID-19 Emotional Distress Analysis Pipeline',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m covid_distress --list                  # List all stages
  python -m covid_distress                         # Run the full pipeline
  python -m covid_distress -a stepwise             # Partition + stepwise only
  python -m covid_distress --seed 7 --folds 5      # Different resampling
  python -m covid_distress --export-tables --export-graph
        """
    )

    parser.add_argument('--analysis', '-a', type=str, metavar='NAME',
                        help='Stage to run (with its prerequisites)')
    parser.add_argument('--list', '-l', action='store_true',
                        help='List available stages')
    parser.add_argument('--quiet', '-q', action='store_true',
                        help='Suppress verbose output')
    parser.add_argument('--observations', type=Path, metavar='PATH',
                        help='Predictor/outcome table (CSV)')
    parser.add_argument('--items', type=Path, metavar='PATH',
                        help='Item-level distress responses (CSV)')
    parser.add_argument('--output', type=Path, metavar='PATH',
                        help='Output directory')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for partition and folds')
    parser.add_argument('--folds', type=int, default=None,
                        help='Number of cross-validation folds')
    parser.add_argument('--workers', type=int, default=None,
                        help='Worker processes per fitting call (default: cores - 1)')
    parser.add_argument('--export-tables', action='store_true',
                        help='Write HTML / APA regression tables')
    parser.add_argument('--export-graph', action='store_true',
                        help='Write the predictor correlation network')

    parsed = parser.parse_args(args)
    verbose = not parsed.quiet

    # Import pipeline (delayed to speed up --help)
    from covid_distress.modeling import FitConfig
    from covid_distress.pipeline import PipelineConfig, list_stages, run

    if parsed.list:
        list_stages()
        return 0

    fit_kwargs = {}
    if parsed.seed is not None:
        fit_kwargs['seed'] = parsed.seed
    if parsed.folds is not None:
        fit_kwargs['n_folds'] = parsed.folds
    if parsed.workers is not None:
        fit_kwargs['n_workers'] = parsed.workers

    config_kwargs = {
        'fit': FitConfig(**fit_kwargs),
        'export_tables': parsed.export_tables,
        'export_graph': parsed.export_graph,
    }
    if parsed.observations is not None:
        config_kwargs['observations_path'] = parsed.observations
    if parsed.items is not None:
        config_kwargs['items_path'] = parsed.items
    if parsed.output is not None:
        config_kwargs['output_dir'] = parsed.output

    try:
        run(analysis=parsed.analysis, verbose=verbose, config=PipelineConfig(**config_kwargs))
    except Exception as e:
        print(f"Error running analysis: {e}")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
