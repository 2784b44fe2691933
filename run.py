"""
FormCoach Server
================

Main entry point for the Flask server.

Usage:
    python run.py
"""

from formcoach.app import create_app, main

__all__ = ["create_app", "main"]


if __name__ == "__main__":
    main()
