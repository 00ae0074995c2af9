"""ZenHub workspace activity aggregation."""

__version__ = "0.1.0"
