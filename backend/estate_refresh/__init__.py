"""Estate Index refresh: scheduled listing sync and static site rebuild."""

__version__ = "0.1.0"
__author__ = "Estate Index Team"

__all__ = ["__version__", "__author__"]
