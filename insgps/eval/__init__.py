"""
Evaluation and visualization for filter runs.

Modules:
    metrics: Position error, RMSE, NIS and its chi-square band, PSD check
    plots: Trajectory and uncertainty plots
"""

from .metrics import (
    compute_nis,
    compute_position_errors,
    compute_rmse,
    covariance_is_psd,
    nis_bounds,
)
from .plots import plot_covariance_trace, plot_trajectory_enu, save_figure

__all__ = [
    # Metrics
    "compute_position_errors",
    "compute_rmse",
    "compute_nis",
    "nis_bounds",
    "covariance_is_psd",
    # Plots
    "plot_trajectory_enu",
    "plot_covariance_trace",
    "save_figure",
]
