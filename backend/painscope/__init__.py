"""painscope: pain-signal scoring and corpus confidence for user feedback."""

__version__ = "0.3.0"
