"""Convert a source repository into one structured document."""

__version__ = "0.1.0"
