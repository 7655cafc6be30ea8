# Infrastructure Storage Adapters Package
from .json_file import JsonFileCardStorage
from .memory import InMemoryCardStorage

__all__ = ["InMemoryCardStorage", "JsonFileCardStorage"]
