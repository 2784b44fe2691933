"""
FormCoach Server
================

Flask application factory and server entry point.

Usage:
    python run.py

Or with gunicorn (one worker; sessions live in process memory):
    gunicorn -w 1 --threads 8 -b 0.0.0.0:5000 "formcoach.app:create_app()"
"""

import logging
from typing import Optional

from flask import Flask

from .api import register_routes
from .config import AnalyzerConfig, get_analyzer_config, get_server_config
from .utils import SessionRegistry

logger = logging.getLogger(__name__)


def create_app(config: Optional[AnalyzerConfig] = None) -> Flask:
    """
    Create the Flask app.

    Args:
        config: Analyzer settings; read from the environment when omitted
    """
    app = Flask(__name__)
    app.json.sort_keys = False

    registry = SessionRegistry(config or get_analyzer_config())
    app.extensions["formcoach.registry"] = registry

    register_routes(app, registry)
    return app


def main():
    """Main entry point."""
    server = get_server_config()
    logging.basicConfig(
        level=getattr(logging, server.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"""
╔══════════════════════════════════════════════════════╗
║          FormCoach Analysis Server                   ║
╠══════════════════════════════════════════════════════╣
║  Server running at: http://{server.host}:{server.port:<5}              ║
║  Debug mode: {str(server.debug):<5}                               ║
║                                                      ║
║  Endpoints:                                          ║
║    GET    /health                   - Health check   ║
║    GET    /exercises                - Profiles       ║
║    POST   /sessions                 - Start session  ║
║    POST   /sessions/<id>/frames     - Analyze frame  ║
║    POST   /sessions/<id>/reset_set  - Next set       ║
║    GET    /sessions/<id>/summary    - Summary        ║
║    DELETE /sessions/<id>            - End session    ║
╚══════════════════════════════════════════════════════╝
    """)
    app = create_app()
    logger.info("Starting server on %s:%d", server.host, server.port)
    app.run(host=server.host, port=server.port, debug=server.debug, threaded=server.threaded)


if __name__ == "__main__":
    main()
