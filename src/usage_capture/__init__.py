"""Headless collector for the Claude CLI ``/usage`` dialog."""

__version__ = "0.3.0"

__all__ = ["__version__"]
