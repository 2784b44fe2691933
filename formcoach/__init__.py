"""
FormCoach
=========

Exercise form analysis over streamed body-pose landmarks.

Modules:
    - analyzers: Pose geometry, exercise profiles and the analysis pipeline
    - api: Flask API routes and endpoints
    - utils: Session registry for the HTTP host
"""

__version__ = "1.0.0"
__author__ = "FormCoach Team"
