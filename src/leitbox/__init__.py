"""leitbox: Leitner-box review engine for daily lesson content."""

from leitbox.consts import VERSION

__version__ = VERSION

__all__ = ["__version__"]
