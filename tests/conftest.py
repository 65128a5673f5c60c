"""
Shared fixtures.
"""

import pytest

from domain.config import PipelineConfig
from services.histograms.definitions import book_strangeness_histograms
from services.histograms.registry import HistogramRegistry


@pytest.fixture
def config_dict(tmp_path):
    return {
        "tasks": {
            "do_reconstructed_qa": True,
            "do_pure_generated": True,
            "do_generated_reconstructible": True,
            "do_write_output": True,
            "do_plots": False,
        },
        "input": {"paths": ["a.root"], "threads": 2, "show_progress_bar": False},
        "output": {
            "output_dir": str(tmp_path / "histograms"),
            "output_filename": "qa.root",
            "plots_dir": str(tmp_path / "plots"),
        },
    }


@pytest.fixture
def config(config_dict):
    return PipelineConfig.from_dict(config_dict)


@pytest.fixture
def registry():
    return book_strangeness_histograms(HistogramRegistry())
