"""Fitness studio booking core: capacity groups, admission, status and cancellation."""

__version__ = "0.1.0"
