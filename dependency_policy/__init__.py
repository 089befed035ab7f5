"""Dependency policy enforcement for resolved package graphs."""

__version__ = "0.1.0"
