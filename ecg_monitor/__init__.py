"""
ECG monitor core for HC-05 serial links.

The package turns the chunked byte stream sent by the ECG front end into
validated ``(ecg_value, bpm)`` samples and keeps the fixed-width sweep
buffer a presentation layer draws from.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
