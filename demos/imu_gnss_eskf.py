"""
IMU + GNSS Error-State Kalman Filter Demo.

Simulates a ground vehicle that stands still for alignment, then accelerates
and drives a slow turn while a 100 Hz IMU and 1 Hz position fixes are
recorded. The filter aligns on the stationary samples, then predicts through
the IMU stream and corrects at every fix.

Usage:
    python -m demos.imu_gnss_eskf
    python -m demos.imu_gnss_eskf --config my_filter.json --save-dir figs
"""

import argparse
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

from insgps.config import FilterConfig, GeodeticReference, NoiseDensities
from insgps.estimators.eskf import ErrorStateKalmanFilter
from insgps.eval.metrics import (
    compute_nis,
    compute_position_errors,
    compute_rmse,
    covariance_is_psd,
    nis_bounds,
)
from insgps.sim.trajectory import SimulatedRun, simulate_run

# Simulated sensor quality
ACCEL_NOISE_STD = 0.02  # m/s² per sample
GYRO_NOISE_STD = 1e-3  # rad/s per sample
ACCEL_BIAS = (0.05, -0.03, 0.02)  # m/s²
GYRO_BIAS = (2e-4, -1e-4, 3e-4)  # rad/s
FIX_NOISE_STD = 1.0  # m


def default_config(reference: np.ndarray) -> FilterConfig:
    """Noise values matched to the simulated sensors (variances per step)."""
    return FilterConfig(
        noise=NoiseDensities(
            sigma_an=ACCEL_NOISE_STD**2,
            sigma_wn=GYRO_NOISE_STD**2,
            sigma_aw=1e-6,
            sigma_ww=1e-8,
        ),
        reference=GeodeticReference(*reference),
    )


def run_eskf(
    run: SimulatedRun,
    config: FilterConfig,
    verbose: bool = False,
) -> Dict[str, np.ndarray]:
    """
    Align on the stationary samples and correct at every position fix.

    Args:
        run: Simulated IMU and fix streams.
        config: Filter configuration.
        verbose: Print filter diagnostics.

    Returns:
        History dict with per-correction arrays: 't', 'p', 'v', 'q',
        'pos_std', 'innovation', 'S', 'nis', 'truth_p', 'psd', 'z_enu'.
    """
    if verbose:
        print("=" * 70)
        print("IMU + GNSS Error-State Kalman Filter")
        print("=" * 70)
        print(f"  IMU samples : {len(run.imu)}")
        print(f"  Fixes       : {len(run.fixes)}")

    ekf = ErrorStateKalmanFilter.from_config(config, verbose=verbose)
    ekf.initialize(run.imu[:run.n_static])

    history: Dict[str, List] = {
        key: [] for key in ("t", "p", "v", "q", "pos_std", "innovation", "S",
                            "nis", "truth_p", "psd", "z_enu")
    }

    last = run.n_static - 1
    for fix, idx in zip(run.fixes, run.fix_indices):
        if idx < last + 2:
            continue
        result = ekf.correct(fix, run.imu[last:idx + 1])
        last = idx

        state = ekf.state
        history["t"].append(fix.t)
        history["p"].append(state.p)
        history["v"].append(state.v)
        history["q"].append(state.q)
        history["pos_std"].append(ekf.position_std)
        history["innovation"].append(result.innovation)
        history["S"].append(result.S)
        history["nis"].append(result.nis)
        history["truth_p"].append(run.truth_p[idx])
        history["psd"].append(covariance_is_psd(ekf.covariance))
        history["z_enu"].append(result.z_enu)

    if verbose:
        print(f"\nFusion complete: {len(history['t'])} corrections applied")

    return {key: np.array(values) for key, values in history.items()}


def evaluate_results(history: Dict[str, np.ndarray]) -> Dict[str, float]:
    """Position accuracy and NIS consistency of a run."""
    errors = compute_position_errors(history["truth_p"], history["p"])
    horizontal = np.linalg.norm(errors[:, :2], axis=1)
    nis = compute_nis(history["innovation"], history["S"])
    lower, upper = nis_bounds(dof=3, confidence=0.95)

    return {
        "rmse_3d": compute_rmse(errors),
        "rmse_2d": compute_rmse(errors[:, :2]),
        "max_horizontal_error": float(np.max(horizontal)),
        "final_error": float(np.linalg.norm(errors[-1])),
        "mean_nis": float(np.nanmean(nis)),
        "nis_in_bounds": float(np.mean((nis >= lower) & (nis <= upper))),
        "all_psd": float(np.all(history["psd"])),
    }


def plot_results(
    run: SimulatedRun,
    history: Dict[str, np.ndarray],
    out_dir: str,
) -> List[Path]:
    """Save trajectory and uncertainty figures to out_dir."""
    import matplotlib.pyplot as plt

    from insgps.eval.plots import (
        plot_covariance_trace,
        plot_trajectory_enu,
        save_figure,
    )

    paths = []
    fig = plot_trajectory_enu(
        run.truth_p, {"ESKF": history["p"]}, fixes_enu=history["z_enu"]
    )
    paths += save_figure(fig, out_dir, "eskf_trajectory", formats=("png",))
    plt.close(fig)

    fig = plot_covariance_trace(history["t"], history["pos_std"])
    paths += save_figure(fig, out_dir, "eskf_position_std", formats=("png",))
    plt.close(fig)

    return paths


def main(argv: Optional[List[str]] = None) -> Dict[str, float]:
    """Main entry point for the ESKF demo."""
    parser = argparse.ArgumentParser(
        description="IMU + GNSS Error-State Kalman Filter Demo"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a filter configuration JSON file"
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=60.0,
        help="Simulated run length in seconds (default: 60)"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Random seed for sensor noise"
    )
    parser.add_argument(
        "--save-dir",
        type=str,
        default=None,
        help="Directory to save result figures"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress filter diagnostics"
    )

    args = parser.parse_args(argv)

    run = simulate_run(
        duration=args.duration,
        accel_bias=ACCEL_BIAS,
        gyro_bias=GYRO_BIAS,
        accel_noise_std=ACCEL_NOISE_STD,
        gyro_noise_std=GYRO_NOISE_STD,
        fix_noise_std=FIX_NOISE_STD,
        seed=args.seed,
    )

    if args.config:
        print(f"\nLoading filter configuration from: {args.config}")
        config = FilterConfig.from_json(args.config)
    else:
        config = default_config(run.reference)

    history = run_eskf(run, config, verbose=not args.quiet)

    metrics = evaluate_results(history)
    print("\n" + "=" * 70)
    print("Evaluation Metrics")
    print("=" * 70)
    print(f"  RMSE (3D)        : {metrics['rmse_3d']:.3f} m")
    print(f"  RMSE (2D)        : {metrics['rmse_2d']:.3f} m")
    print(f"  Max 2D Error     : {metrics['max_horizontal_error']:.3f} m")
    print(f"  Final Error      : {metrics['final_error']:.3f} m")
    print(f"  Mean NIS         : {metrics['mean_nis']:.2f} (expected: 3)")
    print(f"  NIS in 95% band  : {100 * metrics['nis_in_bounds']:.1f}%")
    print("")

    if args.save_dir:
        for path in plot_results(run, history, args.save_dir):
            print(f"Saved figure: {path}")

    return metrics


if __name__ == "__main__":
    main()
