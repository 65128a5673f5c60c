"""
Plotting state handler.
"""

from orchestration.context import PipelineContext
from orchestration.states import PipelineState
from .base import StateHandler
from services.analysis.efficiency_plotter import EfficiencyPlotter, histograms_from_registry


class PlottingHandler(StateHandler):
    """Handler for PLOTTING state: draws plots from the in-memory registry."""
    
    def handle(self, context: PipelineContext) -> tuple[PipelineContext, PipelineState]:
        plotter = EfficiencyPlotter(context.config.output.plots_dir)
        created_plots = plotter.create_all_plots(histograms_from_registry(context.registry))
        
        context = context.with_plot_paths(created_plots)
        return self._advance(context)
