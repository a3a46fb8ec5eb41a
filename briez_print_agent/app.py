"""
Briez Print Agent - HTTP API
============================

Local HTTP API used by the Briez web app running in the browser.

Run: python -m briez_print_agent
"""

import base64
import binascii
import logging
import socket
import sys
import time
from datetime import datetime
from typing import Optional, Sequence

from flask import Flask, request, jsonify, current_app
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from . import __version__
from .config import PORT, FALLBACK_PORT, HOST, DEBUG, AGENT_NAME, LOG_LEVEL, LOG_DIR
from .dispatch import Dispatcher
from .logging_config import setup_logging
from .models import Order, JobKind
from .registry import PrinterRegistry

logger = logging.getLogger(__name__)

EXTENSION = 'briez_print_agent'


# =============================================================================
# Application Setup
# =============================================================================

def create_app(registry: Optional[PrinterRegistry] = None,
               dispatcher: Optional[Dispatcher] = None) -> Flask:
    """
    Build the Flask app around one registry and one dispatcher.

    Args:
        registry: printer registry (a new one is created when omitted)
        dispatcher: print dispatcher (a new one on ``registry`` when omitted)
    """
    app = Flask(__name__)
    CORS(app, origins='*', methods=['GET', 'POST', 'OPTIONS'],
         allow_headers=['Content-Type', 'Authorization'])
    app.config['MAX_CONTENT_LENGTH'] = 10 * 1024 * 1024

    registry = registry or PrinterRegistry()
    app.extensions[EXTENSION] = {
        'registry': registry,
        'dispatcher': dispatcher or Dispatcher(registry),
        'started_at': time.monotonic(),
    }

    _register_routes(app)
    _register_error_handlers(app)
    return app


def _registry() -> PrinterRegistry:
    return current_app.extensions[EXTENSION]['registry']


def _dispatcher() -> Dispatcher:
    return current_app.extensions[EXTENSION]['dispatcher']


def _error(message: str, status: int, reason: Optional[str] = None):
    body = {'success': False, 'message': message}
    if reason:
        body['reason'] = reason
    return jsonify(body), status


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _print_response(result, message: str):
    """200 on success, 500 with the failure reason otherwise."""
    if result.success:
        return jsonify({'success': True, 'message': message, 'jobId': result.job_id})
    return _error(result.error or 'Print failed', 500, result.reason.value if result.reason else None)


def _decode_payload(data, encoding: Optional[str]) -> bytes:
    """
    Turn the ``data`` field of /print into bytes.

    Text keeps control characters byte-for-byte (Latin-1); characters
    outside Latin-1 make the whole text UTF-8.
    """
    if encoding == 'base64':
        return base64.b64decode(data, validate=True)
    try:
        return data.encode('latin-1')
    except UnicodeEncodeError:
        return data.encode('utf-8')


# =============================================================================
# Routes
# =============================================================================

def _register_routes(app: Flask) -> None:

    @app.route('/status', methods=['GET'])
    def status():
        """Agent status and detected printers."""
        registry = _registry()
        printers = registry.list()
        started_at = current_app.extensions[EXTENSION]['started_at']

        return jsonify({
            'connected': True,
            'version': __version__,
            'computerName': socket.gethostname(),
            'printers': [p.to_dict() for p in printers],
            'uptime': round(time.monotonic() - started_at, 3),
            'platform': sys.platform,
            'discoveryErrors': registry.discovery_errors,
        })

    @app.route('/printers', methods=['GET'])
    def list_printers():
        """List all detected printers."""
        return jsonify([p.to_dict() for p in _registry().list()])

    @app.route('/print-test', methods=['POST'])
    def print_test():
        """Print a test page. Body: {printerId}"""
        data = _json_body()
        printer_id = data.get('printerId')
        if not printer_id:
            return _error('printerId is required', 400)

        result = _dispatcher().send_test_page(printer_id)
        return _print_response(result, 'Test page printed')

    @app.route('/print', methods=['POST'])
    def print_raw():
        """
        Print pre-formatted data.

        Body: {printerId, data, type: 'escpos' | 'text', encoding?: 'base64'}
        ``type`` is informational, every payload is sent as is.
        """
        data = _json_body()
        printer_id = data.get('printerId')
        payload = data.get('data')
        if not printer_id or not payload or not isinstance(payload, str):
            return _error('printerId and data are required', 400)

        try:
            payload = _decode_payload(payload, data.get('encoding'))
        except (binascii.Error, ValueError):
            return _error('data is not valid base64', 400)

        result = _dispatcher().send(printer_id, payload, JobKind.RAW)
        return _print_response(result, 'Print job sent')

    @app.route('/print-order', methods=['POST'])
    def print_order():
        """Print an order ticket. Body: {printerId, order}"""
        data = _json_body()
        printer_id = data.get('printerId')
        if not printer_id or not data.get('order'):
            return _error('printerId and order are required', 400)

        try:
            order = Order.from_dict(data['order'])
        except ValueError as e:
            return _error(f'Invalid order: {e}', 400)

        result = _dispatcher().send_order(printer_id, order)
        return _print_response(result, 'Order printed')

    @app.route('/health', methods=['GET'])
    def health():
        """Liveness check."""
        return jsonify({'status': 'ok', 'timestamp': datetime.now().isoformat()})


def _register_error_handlers(app: Flask) -> None:

    @app.errorhandler(HTTPException)
    def http_error(e: HTTPException):
        return _error(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def unexpected_error(e: Exception):
        logger.exception(f'Unhandled error on {request.method} {request.path}')
        return _error('Internal error', 500)


# =============================================================================
# Main
# =============================================================================

def choose_port(host: str, ports: Sequence[int]) -> Optional[int]:
    """First port in ``ports`` that can be bound on ``host``, or None."""
    for port in ports:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            try:
                sock.bind((host, port))
            except OSError:
                logger.warning(f'Port {port} is already in use')
                continue
        return port
    return None


def main():
    """Run the agent."""
    setup_logging(LOG_LEVEL, LOG_DIR)

    port = choose_port(HOST, [PORT, FALLBACK_PORT])
    if port is None:
        print(f'Ports {PORT} and {FALLBACK_PORT} are both in use, exiting')
        sys.exit(1)

    print("=" * 60)
    print(f"  {AGENT_NAME}")
    print("=" * 60)
    print(f"  Version: {__version__}")
    print(f"  Computer: {socket.gethostname()}")
    print(f"  Port: {port}")
    print("=" * 60)
    print("  API Endpoints:")
    print("    GET  /status       - Agent status and printers")
    print("    GET  /printers     - List printers")
    print("    POST /print-test   - Print test page")
    print("    POST /print        - Print raw ESC/POS data")
    print("    POST /print-order  - Print order ticket")
    print("    GET  /health       - Health check")
    print("=" * 60)

    app = create_app()
    app.run(host=HOST, port=port, debug=DEBUG, threaded=True, use_reloader=False)


if __name__ == '__main__':
    main()
