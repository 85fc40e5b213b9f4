from .signal import Signal, ObservableProperty
from .base import BaseController

__all__ = [
    "BaseController",
    "ObservableProperty",
    "Signal",
]
