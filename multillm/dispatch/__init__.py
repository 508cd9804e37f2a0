from .pool import FanOutDispatcher
from .schemas import DispatchSummary, FailedModel
from .stats import summarize

__all__ = [
    'FanOutDispatcher',
    'DispatchSummary',
    'FailedModel',
    'summarize',
]
