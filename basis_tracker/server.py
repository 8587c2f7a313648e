"""
HTTP server for Basis Tracker.

A simple Flask app exposing one GET endpoint per handler:

    GET /api/fetch-basis
    GET /api/fetch-sheet
    GET /api/fetch-browserless
    GET /api/fetch-rendered

Each call runs the handler once and returns its JSON summary. A cron job
(or the bundled scheduler) hits these at most once a day.
"""

import logging
from flask import Flask, abort, jsonify, request

from .handlers import HANDLERS, invoke

logger = logging.getLogger(__name__)

app = Flask(__name__)


@app.errorhandler(405)
def method_not_allowed(error):
    """Only GET is accepted on the handler routes."""
    return jsonify({"error": "Method not allowed"}), 405


@app.route("/api/<handler_name>", methods=["GET"], provide_automatic_options=False)
def run_handler(handler_name: str):
    """
    Run a handler and return its summary.

    200: {success, message, log, saved, skipped, errors, debug?}
    500: {success: false, error, log}
    """
    # Flask routes HEAD to GET views; a HEAD must not start an import
    if request.method != "GET":
        abort(405)

    if handler_name not in HANDLERS:
        logger.warning(f"Unknown handler: {handler_name}")
        return jsonify({"error": f"Unknown handler: {handler_name}"}), 404

    logger.info(f"Running handler {handler_name}")
    status, body = invoke(handler_name)
    return jsonify(body), status


@app.route("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


def run_server(host: str = "0.0.0.0", port: int = 5000, debug: bool = False):
    """Run the Flask server."""
    app.run(host=host, port=port, debug=debug)


def main():
    """CLI entry point for the HTTP server."""
    import argparse

    parser = argparse.ArgumentParser(description="Basis Tracker HTTP Server")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    parser.add_argument("--port", type=int, default=5000, help="Port to bind to")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )

    logger.info(f"Starting Basis Tracker server on {args.host}:{args.port}")
    run_server(args.host, args.port, args.debug)


if __name__ == "__main__":
    main()
