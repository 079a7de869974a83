"""dayplanner - energy-aware daily planning."""

__version__ = "0.1.0"
