"""
Renders named outputs and scope traces of a SimulationResult to an image.

matplotlib is imported lazily with the non-interactive Agg backend so the
simulator never needs a display.
"""

import logging
from typing import Dict, Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)


def _series(result, include_traces: bool) -> Dict[str, np.ndarray]:
    series = dict(result.outputs)
    if include_traces:
        for name, values in result.traces.items():
            key = name if name not in series else f"{name} (scope)"
            series[key] = values
    return series


def plot_traces(result, filepath: str, names: Optional[Sequence[str]] = None,
                include_traces: bool = True, title: str = "Simulation") -> bool:
    """
    Plot signals of ``result`` against time and save the figure.

    Args:
        result: SimulationResult from SimulationEngine.run
        filepath: Image path (format taken from the suffix, e.g. ``.png``)
        names: Signals to plot; all outputs (and traces) by default
        include_traces: Also plot scope and file-sink traces
        title: Figure title

    Returns:
        True if a figure was written, False if there was nothing to plot.
    """
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    series = _series(result, include_traces)
    if names is not None:
        series = {name: series[name] for name in names if name in series}
    if not series or len(result.times) == 0:
        logger.info("PLOT: No signals to plot.")
        return False

    fig, ax = plt.subplots(figsize=(10, 6))
    try:
        for name, values in series.items():
            ax.plot(result.times, values, linewidth=1.2, label=name)
        ax.set_xlabel("Time (s)")
        ax.set_ylabel("Value")
        ax.set_title(title)
        ax.grid(True, alpha=0.3)
        ax.legend(loc="best")
        fig.tight_layout()
        fig.savefig(filepath)
    finally:
        plt.close(fig)

    logger.info(f"PLOT: Saved {len(series)} signals to {filepath}")
    return True
