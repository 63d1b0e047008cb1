"""Reporter modules for outputting bootstrap progress."""

from .base import Reporter
from .console import ConsoleReporter

__all__ = ["Reporter", "ConsoleReporter"]
