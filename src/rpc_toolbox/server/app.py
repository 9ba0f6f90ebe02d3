from __future__ import annotations
import logging
import os
import secrets
import traceback
import uuid

from flask import Flask, Response, current_app, jsonify, request, session
from werkzeug.exceptions import HTTPException
from werkzeug.routing import PathConverter

from ..dispatch.dispatcher import Dispatcher
from ..dispatch.errors import ConfigurationError, RoutingError, RpcError
from ..dispatch.registration import ServiceRegistry
from ..dispatch.transport import InboundRequest, ResponseSink
from .config import load_registry

SECRET_KEY_ENV = "RPC_SECRET_KEY"
URL_PREFIX_ENV = "RPC_URL_PREFIX"
DEFAULT_URL_PREFIX = "/rpc"
SESSION_KEY = "rpc_session_id"


class AnyPathConverter(PathConverter):
    """Like `path`, but also matches segments starting with a slash."""
    regex = ".*?"
    # spans several path segments
    part_isolating = False


def _traceback_str(e: Exception) -> str | None:
    return "".join(traceback.format_exception(type(e), e, e.__traceback__))


def _with_traceback(payload: dict, exc: Exception | None):
    if exc is not None:
        tb = _traceback_str(exc)
        if tb is not None:
            payload["traceback"] = tb
    return payload


def _json_error(error_code: str, message: str, status: int, exc: Exception | None = None):
    payload = {"error": error_code, "message": message}
    return jsonify(_with_traceback(payload, exc)), status


def _rpc_error(e: RpcError, with_traceback: bool = False):
    payload = e.to_error_obj()
    return jsonify(_with_traceback(payload, e if with_traceback else None)), e.http_status


def _adopt_gunicorn_logging(app: Flask) -> None:
    gunicorn_error_logger = logging.getLogger("gunicorn.error")
    if not gunicorn_error_logger.handlers:
        return
    app.logger.handlers = gunicorn_error_logger.handlers
    app.logger.setLevel(gunicorn_error_logger.level)
    app.logger.propagate = False

    for name in ("werkzeug", "dispatch", "services"):
        logging.getLogger(name).handlers = gunicorn_error_logger.handlers
        logging.getLogger(name).setLevel(gunicorn_error_logger.level)


def _session_id() -> str:
    session_id = session.get(SESSION_KEY)
    if session_id is None:
        session_id = uuid.uuid4().hex
        session[SESSION_KEY] = session_id
    return session_id


def inbound_request(path: str) -> InboundRequest:
    """Build the dispatcher's view of the current Flask request."""
    # read the body before the form so a form post is parsed from the cache
    body = request.get_data(cache=True)
    return InboundRequest(
        path=path,
        params=request.values.to_dict(),
        body=body,
        content_type=request.content_type,
        session_id=_session_id(),
        http_method=request.method,
    )


def create_app(
    registry: ServiceRegistry | None = None,
    config_path: str | None = None,
    url_prefix: str | None = None,
    secret_key: str | None = None,
) -> Flask:
    """
    Build the Flask application serving the registry under `url_prefix`.

    Without an explicit registry the services are loaded from the YAML file
    at `config_path` (or `$RPC_SERVICES_CONFIG`).
    """
    app = Flask(__name__)
    app.url_map.merge_slashes = False
    app.url_map.converters["anypath"] = AnyPathConverter
    app.secret_key = secret_key or os.environ.get(SECRET_KEY_ENV) or secrets.token_hex(32)
    _adopt_gunicorn_logging(app)

    if registry is None:
        registry = load_registry(config_path)
    dispatcher = Dispatcher(registry)
    app.extensions["rpc_dispatcher"] = dispatcher

    if url_prefix is None:
        url_prefix = os.environ.get(URL_PREFIX_ENV, DEFAULT_URL_PREFIX)
    url_prefix = url_prefix.rstrip("/")

    # ---------------------------------------------------------------------
    # Health
    # ---------------------------------------------------------------------

    @app.route("/health", methods=["GET"])
    def health():
        return "OK", 200

    # ---------------------------------------------------------------------
    # Error handlers
    # ---------------------------------------------------------------------

    @app.errorhandler(RoutingError)
    def handle_routing_error(e: RoutingError):
        return _rpc_error(e)

    @app.errorhandler(ConfigurationError)
    def handle_configuration_error(e: ConfigurationError):
        return _rpc_error(e, with_traceback=True)

    @app.errorhandler(RpcError)
    def handle_rpc_error(e: RpcError):
        current_app.logger.warning("RpcError: %s", e.message)
        return _rpc_error(e)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return _json_error("http_error", e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception):
        current_app.logger.error("Unhandled exception in request", exc_info=e)
        return _json_error("internal_error", f"internal server error: {e}", 500, e)

    # ---------------------------------------------------------------------
    # Services
    # ---------------------------------------------------------------------

    def rpc(path: str):
        sink = ResponseSink()
        dispatcher.dispatch(inbound_request("/" + path), sink)
        return Response(sink.getvalue(), status=sink.status, content_type=sink.content_type)

    methods = ["GET", "POST"]
    app.add_url_rule(f"{url_prefix}/", "rpc", rpc, defaults={"path": ""}, methods=methods)
    app.add_url_rule(f"{url_prefix}/<anypath:path>", "rpc", rpc, methods=methods)
    return app
