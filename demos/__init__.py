"""Runnable examples for the insgps filter.

- imu_gnss_eskf: simulated IMU + position-fix run through the ESKF
"""
