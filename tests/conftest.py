import threading
import time
from pathlib import Path
from typing import Any, List, Optional

import pytest
import requests
from werkzeug.serving import make_server

from rpc_toolbox.client import RpcClient
from rpc_toolbox.dispatch import (
    Dispatcher,
    InboundRequest,
    ResponseSink,
    ServiceDescription,
    ServiceRegistry,
)
from rpc_toolbox.handlers import (
    JsonFaultRenderer,
    JsonQueryArgumentsExtractor,
    JsonResultRenderer,
    SingletonTargetResolver,
)
from rpc_toolbox.server.app import create_app
from rpc_toolbox.server.config import load_registry

ROOT = Path(__file__).resolve().parents[1]
SERVICES_CONFIG = ROOT / "rpc-services.yaml"


def pytest_addoption(parser):
    parser.addoption(
        "--server-url",
        action="store",
        default=None,
        help="Use an already running server, e.g. http://127.0.0.1:5000",
    )


# ---------------------------------------------------------------------------
# Services used by the dispatcher tests
# ---------------------------------------------------------------------------

class Calculator:
    def add(self, a: int, b: int) -> int:
        return a + b

    def div(self, a: int, b: int) -> float:
        return a / b

    def reset(self) -> None:
        pass


def calc_description(name: str = "calc", **overrides: Any) -> ServiceDescription:
    fields = dict(
        service_name=name,
        service_type=Calculator,
        argument_extractors=[JsonQueryArgumentsExtractor()],
        target_resolvers=[SingletonTargetResolver()],
        result_renderers=[JsonResultRenderer()],
        fault_renderers=[JsonFaultRenderer()],
    )
    fields.update(overrides)
    return ServiceDescription(**fields)


def make_request(path: str, arguments: Optional[str] = None, session_id: Optional[str] = "s1") -> InboundRequest:
    params = {} if arguments is None else {"a": arguments}
    return InboundRequest(path=path, params=params, session_id=session_id)


class RecordingExtractor:
    """Declines or answers with fixed arguments, recording every call."""

    def __init__(self, arguments: Optional[List[Any]], calls: List[str], label: str):
        self.arguments = arguments
        self.calls = calls
        self.label = label

    def extract(self, context):
        self.calls.append(self.label)
        return self.arguments


@pytest.fixture
def calc_registry() -> ServiceRegistry:
    return ServiceRegistry.from_descriptions([calc_description()])


@pytest.fixture
def dispatcher(calc_registry) -> Dispatcher:
    return Dispatcher(calc_registry)


@pytest.fixture
def sink() -> ResponseSink:
    return ResponseSink()


# ---------------------------------------------------------------------------
# Flask application
# ---------------------------------------------------------------------------

@pytest.fixture
def app():
    app = create_app(config_path=str(SERVICES_CONFIG), url_prefix="/rpc", secret_key="test-secret")
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def http(app):
    return app.test_client()


# ---------------------------------------------------------------------------
# Live server
# ---------------------------------------------------------------------------

def _wait_until_ready(url: str, timeout_s: float = 30.0) -> None:
    deadline = time.time() + timeout_s
    last_err = None

    while time.time() < deadline:
        try:
            r = requests.get(url + "/health", timeout=0.5)
            if r.status_code == 200 and r.text.strip() == "OK":
                return
        except requests.RequestException as e:
            last_err = e

        time.sleep(0.2)

    raise TimeoutError(f"Server not ready at {url}. Last error: {last_err!r}")


@pytest.fixture(scope="session")
def server_url(pytestconfig) -> str:
    provided = pytestconfig.getoption("--server-url")
    if provided:
        url = provided.rstrip("/")
        _wait_until_ready(url)
        yield url
        return

    # Fallback: serve the sample configuration from a thread of this process
    app = create_app(registry=load_registry(str(SERVICES_CONFIG)), url_prefix="/rpc")
    server = make_server("127.0.0.1", 0, app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    url = f"http://127.0.0.1:{server.server_port}"
    try:
        _wait_until_ready(url)
        yield url
    finally:
        server.shutdown()
        thread.join(timeout=5)


@pytest.fixture
def client(server_url):
    client = RpcClient(server_url + "/rpc", timeout=10)
    yield client
    client.close()
