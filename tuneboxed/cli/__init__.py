"""Command line interface for tuneboxed."""
from .main import main, run_cli

__all__ = ["main", "run_cli"]
