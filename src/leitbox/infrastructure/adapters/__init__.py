# Infrastructure Adapters Package
from .analytics import HttpAnalyticsSink, LoggingAnalyticsSink
from .storage import InMemoryCardStorage, JsonFileCardStorage

__all__ = [
    "LoggingAnalyticsSink",
    "HttpAnalyticsSink",
    "InMemoryCardStorage",
    "JsonFileCardStorage",
]
