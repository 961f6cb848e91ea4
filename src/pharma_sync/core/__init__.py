"""Core building blocks shared by all pharma-sync features."""

from .observers import ObserverRegistry, Subscription

__all__ = [
    "ObserverRegistry",
    "Subscription",
]
