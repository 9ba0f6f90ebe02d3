from typing import Any, Dict, List, Optional
import functools
import json

import requests


class ClientError(Exception):
    def __init__(self, code, message):
        super().__init__(code, message)
        self.code = code
        self.message = message


class RemoteException(Exception):
    """
    An exception raised by the remote method, as described by the server's
    fault envelope. `cause` is the remote cause, if any.
    """
    def __init__(self, class_name: str, message: str, cause: Optional["RemoteException"] = None):
        super().__init__(f"{class_name}: {message}")
        self.class_name = class_name
        self.message = message
        self.cause = cause

    @classmethod
    def from_json(cls, obj: Dict[str, Any]) -> "RemoteException":
        cause = obj.get("cause")
        return cls(
            obj.get("class", ""),
            obj.get("message", ""),
            cls.from_json(cause) if cause else None,
        )


def retry(fn):
    """
    Retries the decorated method up to `retry` times (default 0) on ClientError
    """
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        retry = int(kwargs.get("retry", 0) or 0)
        last_exc: Exception | None = None

        for _ in range(retry + 1):  # total attempts = 1 + retry
            try:
                return fn(*args, **kwargs)
            except ClientError as e:
                last_exc = e

        assert last_exc is not None
        raise last_exc
    return wrapper


class ServiceProxy:
    """Attribute-style calls on one remote service: `proxy.add(3, 4)`."""

    def __init__(self, client: "RpcClient", service: str):
        self._client = client
        self._service = service

    def __getattr__(self, method: str):
        if method.startswith("_"):
            raise AttributeError(method)

        def call(*args, retry: int = 0):
            return self._client.call(self._service, method, *args, retry=retry)
        call.__name__ = method
        return call

    def __repr__(self):
        return f"ServiceProxy({self._service!r})"


class RpcClient:
    """
    A simple client API for interacting with the RPC Flask server.

    The underlying `requests.Session` keeps the session cookie, so services
    scoped to the client session keep their state between calls.
    """
    def __init__(self, base_url: str, timeout: float | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = requests.Session()

    def close(self):
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _post(self, path: str, data: Dict[str, str] | None = None) -> Any:
        url = f"{self.base_url}/{path}"
        response = self.http.post(url, data=data, timeout=self.timeout)
        if response.status_code == 200:
            return response.json()
        try:
            output = response.json()
            raise ClientError(output.get("error", response.status_code), output.get("message", response.text))
        except ValueError:
            raise ClientError(response.status_code, response.text) from None

    def list_services(self) -> List[str]:
        """
        Names of the services registered on the server.
        """
        return self._post("")

    @retry
    def call(self, service: str, method: str, *args: Any, retry: int = 0) -> Any:
        """
        Invoke `service/method` with positional arguments, sent as the JSON
        array parameter `a`. Returns the remote return value, `None` for a
        void method.
        """
        output = self._post(f"{service}/{method}", {"a": json.dumps(list(args))})
        fault = output.get("exception")
        if fault is None and isinstance(output.get("error"), dict):
            fault = output["error"]
        if fault is not None:
            raise RemoteException.from_json(fault)
        return output.get("return")

    def service(self, name: str) -> ServiceProxy:
        return ServiceProxy(self, name)
