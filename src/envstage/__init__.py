"""envstage - per-target configuration staging and packaging."""

__version__ = "0.1.0"
