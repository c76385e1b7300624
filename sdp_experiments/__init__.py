"""Repeated cross-validation experiments for software defect prediction."""

__version__ = "0.1.0"
