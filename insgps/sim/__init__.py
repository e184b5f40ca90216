"""Synthetic IMU and position-fix generation for tests and demos."""

from insgps.sim.trajectory import SimulatedRun, simulate_run

__all__ = ["SimulatedRun", "simulate_run"]
