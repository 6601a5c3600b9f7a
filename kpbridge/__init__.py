"""Knowledge pool to Microsoft 365 search bridge."""

__version__ = "1.0.0"
