#!/usr/bin/env python3
"""
Command line for the strangeness reconstruction QA.

A run reads AO2D-style table files, evaluates V0 and cascade candidates
against simulation truth and writes one histogram file plus plots.

Large productions are split into array jobs sharing one run directory:
every job processes its slice of the input files into
``histograms/batch_<index>.root`` and ``logs/batch_<index>_stats.json``,
then a single ``--merge-only`` job sums the batch files and draws the
plots. ``--plots-only`` redraws plots from a finished run.
"""

import sys
import os
import logging
import argparse
import yaml

from domain.config import PipelineConfig
from pipeline.executor import PipelineExecutor
from utils.paths import create_timestamped_run_dir, update_config_paths_with_run_dir

logger = logging.getLogger("strangeness_qa")

EXAMPLES = """
examples:
  strangeness-qa --config lhc22_mc.yaml
  strangeness-qa --config lhc22_mc.yaml --dry-run

  # array job 3 of 10 writing into a shared run directory
  strangeness-qa --config lhc22_mc.yaml --run-dir ./output/lhc22 \\
      --batch-job-index 3 --total-batch-jobs 10

  # once every array job has finished
  strangeness-qa --config lhc22_mc.yaml --run-dir ./output/lhc22 --merge-only
  strangeness-qa --config lhc22_mc.yaml --run-dir ./output/lhc22 --plots-only
"""


def setup_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def load_config(config_path: str) -> dict:
    with open(config_path, 'r') as f:
        return yaml.safe_load(f) or {}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="strangeness-qa",
        description="V0 and cascade reconstruction QA on simulated collision tables",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EXAMPLES,
    )
    parser.add_argument("--config", default="config.yaml",
                        help="YAML configuration (default: %(default)s)")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--dry-run", action="store_true",
                        help="Validate the configuration and list the inputs, then exit")
    parser.add_argument("--run-dir",
                        help="Existing run directory; a timestamped one is created otherwise")

    jobs = parser.add_argument_group("array jobs")
    jobs.add_argument("--batch-job-index", type=int,
                      help="1-based index of this job ($PBS_ARRAY_INDEX)")
    jobs.add_argument("--total-batch-jobs", type=int,
                      help="Number of jobs the input files are split over")

    modes = parser.add_mutually_exclusive_group()
    modes.add_argument("--merge-only", action="store_true",
                       help="Sum batch_*.root in --run-dir, aggregate statistics and plot")
    modes.add_argument("--plots-only", action="store_true",
                       help="Redraw plots from the histogram file in --run-dir")
    return parser


def parse_args(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if (args.batch_job_index is None) != (args.total_batch_jobs is None):
        parser.error("--batch-job-index and --total-batch-jobs must be given together")
    if (args.merge_only or args.plots_only) and not args.run_dir:
        parser.error("--merge-only and --plots-only need --run-dir")
    return args


def _resolve_run_dir(args, run_metadata: dict) -> str:
    if args.run_dir:
        os.makedirs(args.run_dir, exist_ok=True)
        logger.info(f"Using run directory {args.run_dir}")
        return args.run_dir
    run_dir = create_timestamped_run_dir(
        run_metadata.get('base_output_dir', './output'),
        run_metadata.get('run_name', 'strangeness_qa'),
    )
    logger.info(f"Created run directory {run_dir}")
    return run_dir


def prepare_job_config(args, config_dict: dict):
    """
    Apply command line overrides and return (config, run_dir).

    Array jobs get their own histogram file name and never plot; the
    merge job plots the summed histograms instead.
    """
    run_metadata = dict(config_dict.get('run_metadata') or {})
    run_dir = _resolve_run_dir(args, run_metadata)

    run_metadata.pop('base_output_dir', None)
    if args.batch_job_index is not None:
        run_metadata.update(
            batch_job_index=args.batch_job_index,
            total_batch_jobs=args.total_batch_jobs,
        )
    config_dict["run_metadata"] = run_metadata
    config_dict = update_config_paths_with_run_dir(config_dict, run_dir)

    if args.batch_job_index is not None:
        config_dict["output"]["output_filename"] = f"batch_{args.batch_job_index}.root"
        config_dict["tasks"] = dict(config_dict.get("tasks") or {}, do_plots=False)

    return PipelineConfig.from_dict(config_dict), run_dir


def run_post_processing(args, config_dict: dict) -> int:
    config_dict = update_config_paths_with_run_dir(config_dict, args.run_dir)
    executor = PipelineExecutor(PipelineConfig.from_dict(config_dict))
    if args.merge_only:
        logger.info(f"Merging batch outputs in {args.run_dir}")
        executor.merge_outputs(args.run_dir)
    else:
        logger.info(f"Redrawing plots for {args.run_dir}")
        executor.generate_plots_from_output(args.run_dir)
    return 0


def run_pipeline(args, config_dict: dict) -> int:
    config, run_dir = prepare_job_config(args, config_dict)

    job = ""
    if config.is_batch_job:
        job = f" [job {config.batch_job_index}/{config.total_batch_jobs}]"

    if args.dry_run:
        enabled = [name for name, value in vars(config.tasks).items() if value]
        logger.info(f"Configuration valid{job}; tasks: {', '.join(enabled) or 'none'}")
        logger.info(f"{len(config.input_config.paths)} input file(s), schema "
                    f"'{config.input_config.schema}', output {config.output.output_path}")
        return 0

    executor = PipelineExecutor(config)
    final_context = executor.run()
    if config.is_batch_job:
        executor.save_batch_stats(run_dir, config.batch_job_index, final_context)

    if not final_context.is_successful:
        logger.error(f"Run failed{job}: {final_context.error_message}")
        return 1
    logger.info(f"Run finished{job}, output in {run_dir}")
    return 0


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        logger.info(f"Reading configuration {args.config}")
        config_dict = load_config(args.config)
        if args.merge_only or args.plots_only:
            return run_post_processing(args, config_dict)
        return run_pipeline(args, config_dict)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
