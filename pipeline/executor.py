"""
Builds the services and handlers for a configuration and runs them.

Besides single runs, the executor owns the multi-job bookkeeping of a run
directory::

    <run_dir>/histograms/batch_<N>.root     one per array job
    <run_dir>/logs/batch_<N>_stats.json     one per array job
    <run_dir>/histograms/<output_filename>  written by merge_outputs
    <run_dir>/logs/aggregated_stats.json    written by merge_outputs
    <run_dir>/plots/*.png
"""

import json
import logging
import os
from pathlib import Path

from domain.config import PipelineConfig
from orchestration import PipelineState, PipelineContext, StateMachine
from orchestration.handlers import (
    TableLoadingHandler,
    ProcessingHandler,
    OutputWritingHandler,
    PlottingHandler,
)
from services.analysis.efficiency_plotter import EfficiencyPlotter, histograms_from_file
from services.histograms.definitions import book_strangeness_histograms
from services.histograms.registry import HistogramRegistry
from services.histograms.writer import HistogramWriter, merge_output_files
from services.parsing.table_reader import TableReader
from services.processing.batch_processor import StrangenessQAProcessor
from services.processing.threaded_processor import ThreadedBatchProcessor

# Counters of RunStatistics.to_dict() that add up across jobs
SUMMED_COUNTERS = (
    "total_batches",
    "mc_collisions",
    "reconstructible_mc_collisions",
    "collisions",
    "selected_collisions",
    "generated_particles",
)
OUTCOME_COUNTERS = ("v0_outcomes", "cascade_outcomes")


class PipelineExecutor:
    """Entry point used by main.py for runs, merges and plot regeneration."""

    def __init__(self, config: PipelineConfig):
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)
        self.state_machine = StateMachine(self._create_handlers())

    def run(self) -> PipelineContext:
        context = PipelineContext(config=self.config, current_state=PipelineState.LOADING_TABLES)
        context = self.state_machine.run(context)
        self._log_results(context)
        return context

    def generate_plots_from_output(self, run_dir: str) -> list[Path]:
        """Draw all plots from the histogram file of ``run_dir``; nothing if it is missing."""
        output_path = os.path.join(run_dir, "histograms", self.config.output.output_filename)
        if not os.path.exists(output_path):
            self.logger.info(f"No histogram file at {output_path}, no plots generated")
            return []

        plotter = EfficiencyPlotter(os.path.join(run_dir, "plots"))
        created = plotter.create_all_plots(histograms_from_file(output_path))
        self.logger.info(f"Created {len(created)} plots from {output_path}")
        return created

    def save_batch_stats(self, run_dir: str, batch_index: int, context: PipelineContext) -> str:
        """Write ``logs/batch_<batch_index>_stats.json`` for merge_outputs to pick up."""
        stats = {
            "batch_index": batch_index,
            "summary": context.get_summary(),
            "input_files": list(context.input_paths),
            "failed_files": dict(context.failed_sources),
        }
        if context.run_stats:
            stats["run_stats"] = context.run_stats.to_dict()

        logs_dir = os.path.join(run_dir, "logs")
        os.makedirs(logs_dir, exist_ok=True)
        stats_path = os.path.join(logs_dir, f"batch_{batch_index}_stats.json")
        with open(stats_path, "w") as f:
            json.dump(stats, f, indent=2, default=str)

        self.logger.info(f"Saved batch stats to: {stats_path}")
        return stats_path

    def merge_outputs(self, run_dir: str):
        """
        Combine the array jobs of ``run_dir``.

        Sums every ``batch_*.root`` into the configured output file,
        aggregates the batch statistics and, if plotting is enabled, draws
        the plots from the merged file.
        """
        hist_dir = Path(run_dir, "histograms")
        logs_dir = Path(run_dir, "logs")

        batch_files = sorted(hist_dir.glob("batch_*.root"))
        if batch_files:
            merged_path = hist_dir / self.config.output.output_filename
            self.logger.info(f"Summing {len(batch_files)} batch files into {merged_path}")
            merge_output_files([str(p) for p in batch_files], str(merged_path))
        else:
            self.logger.warning(f"No batch_*.root files in {hist_dir}")

        stats_files = sorted(logs_dir.glob("batch_*_stats.json"))
        if stats_files:
            aggregated = aggregate_batch_stats(stats_files)
            agg_path = logs_dir / "aggregated_stats.json"
            with open(agg_path, "w") as f:
                json.dump(aggregated, f, indent=2, default=str)
            self.logger.info(f"Aggregated {len(stats_files)} batch stats into {agg_path}")

        if self.config.tasks.do_plots:
            self.generate_plots_from_output(run_dir)

    def _create_handlers(self) -> dict:
        ic = self.config.input_config
        template = book_strangeness_histograms(
            HistogramRegistry(),
            include_v0_dca_to_pv=self.config.analysis.fill_v0_dca_to_pv_qa,
        )
        processor = ThreadedBatchProcessor(
            processor=StrangenessQAProcessor(self.config),
            template=template,
            max_threads=ic.threads,
            show_progress=ic.show_progress_bar,
        )

        reader = TableReader(self.config)

        handlers = {
            PipelineState.LOADING_TABLES: TableLoadingHandler(reader),
            PipelineState.PROCESSING: ProcessingHandler(reader, processor),
        }
        if self.config.tasks.do_write_output:
            handlers[PipelineState.WRITING_OUTPUT] = OutputWritingHandler(HistogramWriter())
        if self.config.tasks.do_plots:
            handlers[PipelineState.PLOTTING] = PlottingHandler()
        return handlers

    def _log_results(self, context: PipelineContext):
        for key, value in context.get_summary().items():
            self.logger.info(f"{key:20s}: {value}")
        if context.run_stats:
            stats = context.run_stats.to_dict()
            for key in OUTCOME_COUNTERS:
                self.logger.info(f"{key:20s}: {stats[key]}")


def aggregate_batch_stats(stats_files) -> dict:
    """Sum the counters of several ``batch_*_stats.json`` files."""
    batch_stats = []
    for path in stats_files:
        with open(path) as f:
            batch_stats.append(json.load(f))

    totals = {}
    outcomes = {key: {} for key in OUTCOME_COUNTERS}
    failed_files = {}
    for stats in batch_stats:
        failed_files.update(stats.get("failed_files", {}))
        run_stats = stats.get("run_stats", {})
        for key in SUMMED_COUNTERS:
            if key in run_stats:
                totals[key] = totals.get(key, 0) + run_stats[key]
        for key, merged in outcomes.items():
            for outcome, count in run_stats.get(key, {}).items():
                merged[outcome] = merged.get(outcome, 0) + count

    aggregated = {
        "num_batches": len(batch_stats),
        "batches": [s.get("batch_index") for s in batch_stats],
        "total_input_files": sum(len(s.get("input_files", [])) for s in batch_stats),
        "failed_files": failed_files,
        "total_batch_time_sec": sum(
            s.get("summary", {}).get("elapsed_time_sec", 0) for s in batch_stats
        ),
    }
    if totals:
        aggregated["totals"] = totals
    aggregated.update(outcomes)
    return aggregated
