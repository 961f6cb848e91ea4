"""Connectivity probe implementations."""

from .http_probe import HttpReachabilityProbe

__all__ = ["HttpReachabilityProbe"]
