"""Release manager for multi-repository symlink deployments."""

__version__ = "0.4.0"
