"""Simulated ring-buffer and Morse transmitter character devices."""

__version__ = "0.1.0"
__all__ = ["errors", "ring", "morse"]