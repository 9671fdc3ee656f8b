"""Utilities for keyrotator."""

from .logging import AuditLogger, obfuscate, setup_logging

__all__ = ["AuditLogger", "obfuscate", "setup_logging"]
