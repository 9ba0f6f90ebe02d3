import pytest

from rpc_toolbox.dispatch.routing import Invoke, ListServices, Malformed, route


@pytest.mark.parametrize("path", ["", "/", None])
def test_empty_path_lists_services(path):
    assert route(path) == ListServices()


@pytest.mark.parametrize("path, service, method", [
    ("/calc/add", "calc", "add"),
    ("calc/add", "calc", "add"),
    ("/a.b-c/get_posts", "a.b-c", "get_posts"),
])
def test_service_and_method(path, service, method):
    assert route(path) == Invoke(service=service, method=method)


@pytest.mark.parametrize("path", [
    "/calc",
    "/calc/",
    "//add",
    "/calc/add/extra",
    "/calc//add",
    "//",
])
def test_malformed(path):
    outcome = route(path)
    assert isinstance(outcome, Malformed)
    assert outcome.path == path
