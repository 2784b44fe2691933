"""
Utilities Module
================

Contains shared components for the HTTP host.
"""

from .session_registry import SessionRegistry, UnknownSessionError

__all__ = ["SessionRegistry", "UnknownSessionError"]
