"""Telemetry and observability helpers.

This package emits stage events for binder runs.
"""

from .logger import RunLogger

__all__ = ["RunLogger"]
