"""Archive aging log files into dated containers and prune old archives."""

__version__ = "0.1.0"
