"""
Telemetry HTTP Front End

Flask service routing ``/nasa/<datatype>`` to the telemetry pipeline:

- ``all``: full computed snapshot (propagated state, altitude, speed, location)
- ``statevector``: raw state vector and vehicle status
- ``startcacher`` / ``endcacher``: control the background cacher

Run with:
    telemetry-service
or
    python -m telemetry_service.app
"""

import traceback
from datetime import datetime, timezone
from email.utils import formatdate
from typing import Optional

import structlog
from flask import Flask, Response, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from telemetry_service import __version__
from telemetry_service.cacher import TelemetryCacher, TelemetryUnavailable
from telemetry_service.config import RESPONSE_HEADERS, ServiceConfig
from telemetry_service.logging_config import configure_logging
from telemetry_service.pipeline import compute_snapshot, state_vector_snapshot

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


def _telemetry_response(payload: dict) -> Response:
    response = jsonify(payload)
    response.headers.update(RESPONSE_HEADERS)
    return response


def _status_line(message: str) -> Response:
    return Response(f"{formatdate(usegmt=True)} - {message}", mimetype="text/plain")


def create_app(cacher: Optional[TelemetryCacher] = None, config=ServiceConfig) -> Flask:
    """
    Build the Flask application.

    Args:
        cacher: Telemetry source; a TelemetryCacher on ``config`` when omitted
        config: Service configuration (class or instance)
    """
    app = Flask(__name__)
    CORS(app, resources={r"/nasa/statevector": {"origins": "*"}})

    cacher = cacher or TelemetryCacher(config)
    app.extensions["telemetry_cacher"] = cacher

    @app.route('/nasa/<datatype>', methods=['GET'])
    def nasa(datatype: str):
        """Route a telemetry request by data type."""
        if datatype == "all":
            look_angle_text = cacher.load("rndz") if config.LIVE_LOOK_ANGLE else None
            snapshot = compute_snapshot(
                cacher.load("data"),
                cacher.load("sv"),
                look_angle_text=look_angle_text,
                vehicle_tag=config.VEHICLE_TAG,
            )
            return _telemetry_response(snapshot)

        if datatype == "statevector":
            snapshot = state_vector_snapshot(
                cacher.load("data"),
                cacher.load("sv"),
                vehicle_tag=config.VEHICLE_TAG,
            )
            return _telemetry_response(snapshot)

        if datatype == "startcacher":
            cacher.start()
            return _status_line("Cacher: started.")

        if datatype == "endcacher":
            cacher.stop()
            return _status_line("Cacher: stopped.")

        return Response("syntax error", mimetype="text/plain")

    @app.route('/health', methods=['GET'])
    def health_check():
        """Service health and cacher state."""
        return jsonify({
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
            "services": {
                "cacher": "running" if cacher.running else "stopped",
                "redis": "connected" if cacher.redis_client is not None else "disabled",
            },
        }), 200

    @app.errorhandler(TelemetryUnavailable)
    def handle_unavailable(error):
        logger.warning(f"Telemetry unavailable: {error}")
        return jsonify({
            "error": "Telemetry not available",
            "detail": str(error),
            "timestamp": datetime.now(timezone.utc).isoformat()
        }), 503

    @app.errorhandler(Exception)
    def handle_error(error):
        """Global error handler"""
        if isinstance(error, HTTPException):
            return error
        logger.error(f"Unhandled error: {error}\n{traceback.format_exc()}")
        return jsonify({
            "error": "Internal server error",
            "timestamp": datetime.now(timezone.utc).isoformat()
        }), 500

    return app


def main() -> None:
    configure_logging()
    app = create_app()
    if ServiceConfig.CACHER_AUTOSTART:
        app.extensions["telemetry_cacher"].start()
    logger.info(f"Server running at http://{ServiceConfig.SERVICE_HOST}:{ServiceConfig.SERVICE_PORT}/nasa/")
    app.run(host=ServiceConfig.SERVICE_HOST, port=ServiceConfig.SERVICE_PORT, debug=False)


if __name__ == '__main__':
    main()
