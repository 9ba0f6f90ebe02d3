import pytest
import requests

from rpc_toolbox.client import ClientError, RemoteException, RpcClient

pytestmark = pytest.mark.api


def test_health_endpoint(server_url):
    resp = requests.get(f"{server_url}/health")
    assert resp.status_code == 200
    assert resp.text == "OK"


def test_list_services(client):
    assert client.list_services() == ["test", "random", "chat"]


def test_call(client):
    assert client.call("test", "echo", 3) == 3
    assert client.call("test", "echo", "three") == "three"
    assert client.call("test", "return_void") is None


def test_service_proxy(client):
    test = client.service("test")
    assert test.echo(1, 2.5, True, "s") == [1, 2.5, True, "s"]


def test_session_is_kept_by_client(client, server_url):
    client.call("test", "save_value", "mine")
    assert client.call("test", "retrieve_value") == "mine"

    with RpcClient(server_url + "/rpc") as other:
        assert other.call("test", "retrieve_value") is None


def test_remote_exception(client):
    with pytest.raises(RemoteException) as excinfo:
        client.call("test", "throw_exception")
    assert excinfo.value.class_name == "builtins.Exception"
    assert excinfo.value.cause.message == "exception cause"
    assert excinfo.value.cause.cause.class_name == "builtins.RuntimeError"


def test_client_error(client):
    with pytest.raises(ClientError) as excinfo:
        client.call("nope", "echo", 1)
    assert excinfo.value.code == "unknown_service"

    with pytest.raises(ClientError) as excinfo:
        client.call("test", "echo", 1, 2, retry=2)
    assert excinfo.value.code == "no_matching_method"
