"""Verification signal file adapter."""

from __future__ import annotations

from .reader import SignalFileError, parse_signal_lines, read_signal_file
from .schema import VerificationSignalPayload

__all__ = [
    "SignalFileError",
    "VerificationSignalPayload",
    "parse_signal_lines",
    "read_signal_file",
]
