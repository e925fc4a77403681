# core/analyser/errors.py
from __future__ import annotations


class AnalyserError(Exception):
    """Base class for analyser failures."""


class ConfigurationError(AnalyserError, ValueError):
    """Invalid analyser configuration; fatal to instance creation."""


class FormatError(AnalyserError, ValueError):
    """Chunk does not match the PCM format attached to the analyser."""


class AnalyserClosedError(AnalyserError, RuntimeError):
    """Chunk written to an analyser (or stage) that was already closed."""
