"""Account and session core for the TuneBoxed music-sharing client."""

__version__ = "0.1.0"
