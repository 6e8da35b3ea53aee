"""Prometheus exporter for Slurm: collectors for Slurm command output and an HTTP metrics server."""

__version__ = "0.1.0"