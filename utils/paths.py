"""
Run directory layout.

    <run_dir>/histograms/   ROOT files and their JSON metadata
    <run_dir>/plots/        PNG plots
    <run_dir>/logs/         batch statistics
"""

import os
from datetime import datetime

RUN_SUBDIRS = ("histograms", "plots", "logs")


def create_timestamped_run_dir(base_output_dir: str, run_name: str = None) -> str:
    """
    Create ``<base_output_dir>/<run_name>_<YYYYmmdd_HHMMSS>`` and return it.

    ``run`` is used as prefix when no run name is given.
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_dir = os.path.join(base_output_dir, f"{run_name or 'run'}_{timestamp}")
    os.makedirs(run_dir, exist_ok=True)
    return run_dir


def update_config_paths_with_run_dir(config_dict: dict, run_dir: str) -> dict:
    """
    Point the output section of ``config_dict`` into ``run_dir``.

    Creates the run sub-directories. Only missing or relative output
    paths are replaced; absolute ones in the YAML are kept. Returns a
    copy, the input dict is left unchanged.
    """
    for sub_dir in RUN_SUBDIRS:
        os.makedirs(os.path.join(run_dir, sub_dir), exist_ok=True)

    output = dict(config_dict.get('output') or {})
    defaults = {
        'output_dir': os.path.join(run_dir, "histograms"),
        'plots_dir': os.path.join(run_dir, "plots"),
    }
    for key, path in defaults.items():
        if not os.path.isabs(output.get(key) or ""):
            output[key] = path

    return dict(config_dict, output=output)
