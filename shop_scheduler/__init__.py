"""Cabinet shop production scheduling and capacity allocation."""

__version__ = "1.0.0"
