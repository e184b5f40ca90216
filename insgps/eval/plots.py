"""
Plots for filter runs.

All functions return matplotlib Figure objects for flexible display/saving.
"""

from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import matplotlib.pyplot as plt
import numpy as np


def plot_trajectory_enu(
    truth_enu: np.ndarray,
    est_enu_dict: Dict[str, np.ndarray],
    fixes_enu: Optional[np.ndarray] = None,
    title: str = "Trajectory (ENU)",
) -> plt.Figure:
    """
    Plot east/north trajectories: truth, estimates and position fixes.

    Args:
        truth_enu: True trajectory, shape (N, 3)
        est_enu_dict: Dictionary of estimated trajectories {name: (M, 3)}
        fixes_enu: Position fixes in ENU, shape (K, 3) (optional)
        title: Plot title

    Returns:
        fig: Matplotlib figure
    """
    fig, ax = plt.subplots(figsize=(10, 8))

    ax.plot(truth_enu[:, 0], truth_enu[:, 1], "k-", linewidth=2,
            label="Ground Truth", zorder=10)
    ax.plot(truth_enu[0, 0], truth_enu[0, 1], "go", markersize=10,
            label="Start", zorder=11)

    colors = ["blue", "red", "green", "orange", "purple"]
    for i, (name, est) in enumerate(est_enu_dict.items()):
        ax.plot(est[:, 0], est[:, 1], "-", color=colors[i % len(colors)],
                linewidth=1.5, label=name, alpha=0.7)

    if fixes_enu is not None:
        ax.plot(fixes_enu[:, 0], fixes_enu[:, 1], "x", color="gray",
                markersize=5, label="Position fixes", zorder=5)

    ax.set_xlabel("East (m)", fontsize=12)
    ax.set_ylabel("North (m)", fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)
    ax.axis("equal")

    plt.tight_layout()
    return fig


def plot_covariance_trace(
    t: np.ndarray,
    position_std: np.ndarray,
    title: str = "Position Uncertainty",
) -> plt.Figure:
    """
    Plot per-axis 1-sigma position uncertainty over time.

    Args:
        t: Timestamps, shape (N,)
        position_std: Per-axis standard deviations, shape (N, 3)
        title: Plot title

    Returns:
        fig: Matplotlib figure
    """
    fig, ax = plt.subplots(figsize=(10, 5))

    for k, label in enumerate(["East", "North", "Up"]):
        ax.plot(t, position_std[:, k], linewidth=1.5, label=f"σ {label}")

    ax.set_xlabel("Time (s)", fontsize=12)
    ax.set_ylabel("1σ position (m)", fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    return fig


def save_figure(
    fig: plt.Figure,
    out_dir: Union[str, Path],
    name: str,
    formats: Tuple[str, ...] = ("svg", "png"),
) -> List[Path]:
    """
    Save figure in multiple formats.

    Args:
        fig: Matplotlib figure to save
        out_dir: Output directory (created if missing)
        name: Base filename (without extension)
        formats: Tuple of format extensions

    Returns:
        paths: List of saved file paths
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    paths = []
    for fmt in formats:
        filepath = out_dir / f"{name}.{fmt}"
        fig.savefig(filepath, dpi=150, bbox_inches="tight")
        paths.append(filepath)

    return paths
