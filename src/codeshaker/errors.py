"""Errors raised by the shaker."""
from __future__ import annotations

from typing import Iterable, List


class ShakerError(Exception):
    """Base class for errors that abort shaking a module."""


class UnknownExportError(ShakerError):
    """Requested export names that the module does not provide."""

    def __init__(self, requested: Iterable[str], filename: str = ""):
        self.requested: List[str] = list(requested)
        self.filename = filename
        super().__init__(f"Unknown export(s) requested: {','.join(self.requested)}")
