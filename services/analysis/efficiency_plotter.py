"""
Efficiency plotter for strangeness QA output.

Generates three plot categories:
1. Spectra        – generated and reconstructible pT spectra per species
                    with their ratio (efficiency upper bound)
2. Event selection – collisions surviving each selection step
3. Invariant mass – mass versus pT of truth-matched candidates
"""

import logging
from pathlib import Path
from typing import Optional

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend for servers
import matplotlib.pyplot as plt

from domain.species import GENERATED_SPECIES, Species
from services.evaluation.generated_spectra import spectrum_ratio
from services.histograms.definitions import (
    EVENT_SELECTION,
    EVENT_SELECTION_LABELS,
    generated_name,
    mass_name,
    reconstructible_name,
)
from services.histograms.registry import HistogramRegistry
from services.histograms.writer import read_output_file


def histograms_from_registry(registry: HistogramRegistry) -> dict[str, tuple]:
    """name -> (counts, *edges) for every booked histogram."""
    return {
        histogram.name: (histogram.values(), *(axis.edges for axis in histogram.axes))
        for histogram in registry
    }


def histograms_from_file(path: str) -> dict[str, tuple]:
    """name -> (counts, *edges) for every histogram stored in a written output file."""
    registry, _ = read_output_file(path)
    return histograms_from_registry(registry)


class EfficiencyPlotter:
    """
    Creates PNG plots from histogram tuples.
    """

    COLORS = {
        'generated': '#2980b9',
        'reconstructible': '#27ae60',
        'ratio': '#8e44ad',
        'selection': '#f39c12',
        'text_dark': '#2c3e50',
    }

    def __init__(self, output_dir: str):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.logger = logging.getLogger(self.__class__.__name__)

    # =========================================================================
    # PLOT 1: Spectra
    # =========================================================================
    def plot_spectra(self, histograms: dict[str, tuple], species: Species) -> Optional[Path]:
        """
        Generated and reconstructible spectra (top) and their ratio (bottom).
        """
        gen = histograms.get(generated_name(species))
        reco = histograms.get(reconstructible_name(species))
        if gen is None or reco is None:
            self.logger.debug(f"No spectra booked for {species}")
            return None

        gen_counts, edges = gen
        reco_counts, _ = reco

        fig, (ax_top, ax_bottom) = plt.subplots(
            2, 1, figsize=(8, 7), sharex=True, gridspec_kw={'height_ratios': [3, 1]}
        )
        fig.suptitle(f'{species} generated spectra', fontsize=14, fontweight='bold',
                     color=self.COLORS['text_dark'])

        if gen_counts.sum() > 0:
            ax_top.stairs(gen_counts, edges, color=self.COLORS['generated'], label='Generated')
            ax_top.stairs(reco_counts, edges, color=self.COLORS['reconstructible'],
                          label='Generated, reconstructed collision')
            ax_top.set_ylabel('Counts')
            ax_top.legend()

            ratio = spectrum_ratio(reco_counts, gen_counts)
            ax_bottom.stairs(ratio, edges, color=self.COLORS['ratio'])
            ax_bottom.set_ylim(0, 1.05)
        else:
            self._empty_panel(ax_top, 'No generated particles')

        ax_bottom.set_xlabel(r'$p_{T}$ (GeV/c)')
        ax_bottom.set_ylabel('Ratio')

        return self._save(fig, f"spectra_{species.family}.png")

    # =========================================================================
    # PLOT 2: Event selection
    # =========================================================================
    def plot_event_selection(self, histograms: dict[str, tuple]) -> Optional[Path]:
        selection = histograms.get(EVENT_SELECTION)
        if selection is None:
            return None
        counts, _ = selection

        fig, ax = plt.subplots(figsize=(7, 5))
        bars = ax.bar(EVENT_SELECTION_LABELS, counts, color=self.COLORS['selection'],
                      edgecolor='white')
        for bar, count in zip(bars, counts):
            ax.text(bar.get_x() + bar.get_width() / 2, bar.get_height(),
                    f'{int(count)}', ha='center', va='bottom', fontweight='bold')
        ax.set_ylabel('Collisions')
        ax.set_title('Event selection', fontsize=13, fontweight='bold')

        return self._save(fig, "event_selection.png")

    # =========================================================================
    # PLOT 3: Invariant mass
    # =========================================================================
    def plot_mass(self, histograms: dict[str, tuple], species: Species) -> Optional[Path]:
        mass = histograms.get(mass_name(species))
        if mass is None:
            return None
        counts, pt_edges, mass_edges = mass

        fig, ax = plt.subplots(figsize=(8, 6))
        if counts.sum() > 0:
            mesh = ax.pcolormesh(pt_edges, mass_edges, counts.T, cmap='viridis')
            fig.colorbar(mesh, ax=ax, label='Candidates')
        else:
            self._empty_panel(ax, 'No candidates in signal region')
        ax.set_xlabel(r'$p_{T}$ (GeV/c)')
        ax.set_ylabel(r'Inv. Mass (GeV/$c^{2}$)')
        ax.set_title(f'{species} invariant mass', fontsize=13, fontweight='bold')

        return self._save(fig, f"mass_{species.family}.png")

    def create_all_plots(self, histograms: dict[str, tuple]) -> list[Path]:
        """
        Generate every plot category for which histograms are available.
        """
        created_plots = []
        plot_calls = [(self.plot_event_selection, (histograms,))]
        for species in GENERATED_SPECIES:
            plot_calls.append((self.plot_spectra, (histograms, species)))
            plot_calls.append((self.plot_mass, (histograms, species)))

        for plot, args in plot_calls:
            try:
                path = plot(*args)
                if path:
                    created_plots.append(path)
            except (ValueError, TypeError) as e:
                self.logger.warning(f"Failed to create {plot.__name__} plot: {e}")

        self.logger.info(f"Created {len(created_plots)} plots in {self.output_dir}")
        return created_plots

    # =========================================================================
    # Helpers
    # =========================================================================
    def _save(self, fig, save_name: str) -> Path:
        output_path = self.output_dir / save_name
        plt.savefig(output_path, dpi=150, bbox_inches='tight', facecolor='white')
        plt.close(fig)
        self.logger.debug(f"Saved {output_path}")
        return output_path

    @staticmethod
    def _empty_panel(ax, message: str):
        """Render an empty panel with a placeholder message."""
        ax.text(0.5, 0.5, message, ha='center', va='center',
                transform=ax.transAxes, fontsize=13, color='#95a5a6',
                style='italic')
        ax.set_xticks([])
        ax.set_yticks([])
