"""
API Routes Module
=================

Flask JSON API for hosts that stream pose frames to the analyzers.
"""

import logging

from flask import jsonify, request

from ..analyzers import PoseFrame, available_exercises, get_profile
from ..errors import ConfigurationError, InvalidPoseFrameError
from ..utils import SessionRegistry, UnknownSessionError

logger = logging.getLogger(__name__)


def register_routes(app, registry: SessionRegistry):
    """
    Register all API routes with the Flask app.

    Args:
        app: Flask application instance
        registry: Session registry shared by all requests
    """

    @app.errorhandler(ConfigurationError)
    def configuration_error(e):
        return jsonify({"error": str(e)}), 404

    @app.errorhandler(UnknownSessionError)
    def unknown_session(e):
        return jsonify({"error": str(e)}), 404

    @app.errorhandler(InvalidPoseFrameError)
    def invalid_frame(e):
        return jsonify({"error": str(e)}), 400

    @app.route("/health")
    def health():
        """Health check endpoint."""
        return jsonify({
            "status": "healthy",
            "active_sessions": len(registry),
        })

    @app.route("/exercises")
    def list_exercises():
        """List the available exercise profiles."""
        return jsonify({
            "exercises": [get_profile(exercise_id).to_dict() for exercise_id in available_exercises()]
        })

    @app.route("/exercises/<exercise_id>")
    def exercise_detail(exercise_id):
        """Get one exercise profile by id or alias."""
        return jsonify(get_profile(exercise_id).to_dict())

    @app.route("/sessions", methods=["POST"])
    def create_session():
        """
        Start an analysis session.

        Request JSON:
            {
                "exercise_id": "squat"
            }

        Response JSON (201):
            {
                "session_id": "<id>",
                "exercise": {...profile...}
            }
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        exercise_id = data.get("exercise_id")
        if not exercise_id:
            return jsonify({"error": "Missing 'exercise_id'"}), 400

        session_id = registry.create(str(exercise_id))
        with registry.acquire(session_id) as analyzer:
            profile = analyzer.profile.to_dict()
        return jsonify({"session_id": session_id, "exercise": profile}), 201

    @app.route("/sessions/<session_id>/frames", methods=["POST"])
    def process_frame(session_id):
        """
        Analyze one pose frame.

        Request JSON:
            {
                "timestamp": 12.345,
                "landmarks": {"left_hip": {"x": 0.5, "y": 0.6, "z": 0.0, "visibility": 0.99}, ...}
            }

        Response JSON:
            FrameAnalysis as a dict
        """
        frame = PoseFrame.from_dict(request.get_json(silent=True))
        with registry.acquire(session_id) as analyzer:
            try:
                analysis = analyzer.analyze(frame)
            except Exception:
                logger.exception("Error processing frame for session %s", session_id)
                return jsonify({"error": "Processing failed"}), 500
        return jsonify(analysis.to_dict())

    @app.route("/sessions/<session_id>/reset_set", methods=["POST"])
    def reset_set(session_id):
        """Start the next set of the same exercise."""
        with registry.acquire(session_id) as analyzer:
            analyzer.reset_for_new_set()
            stats = analyzer.stats()
        return jsonify({"status": "ok", "stats": stats})

    @app.route("/sessions/<session_id>/summary")
    def session_summary(session_id):
        """Get the session summary without ending the session."""
        with registry.acquire(session_id) as analyzer:
            summary = analyzer.summary()
            stats = analyzer.stats()
        return jsonify({"summary": summary.to_dict(), "stats": stats})

    @app.route("/sessions/<session_id>", methods=["DELETE"])
    def end_session(session_id):
        """End a session and return its final summary."""
        analyzer = registry.remove(session_id)
        return jsonify({"status": "closed", "summary": analyzer.summary().to_dict()})
