"""Prometheus exporter for the latest releases of Helm charts."""

__version__ = "0.1.0"
