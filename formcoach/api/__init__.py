"""
API Routes Module
=================

Contains the Flask JSON API for the analysis server.
"""

from .routes import register_routes

__all__ = ["register_routes"]
