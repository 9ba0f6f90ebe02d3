from __future__ import annotations
import io
from dataclasses import dataclass, field
from typing import Mapping, Optional


@dataclass
class InboundRequest:
    """Transport-neutral view of an incoming request."""
    path: str
    params: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    content_type: Optional[str] = None
    session_id: Optional[str] = None
    http_method: str = "GET"


class ResponseSink:
    """
    Outbound response buffer handed to renderers.

    The transport turns the buffered text, status and content type into its
    own response object once dispatching has finished.
    """

    def __init__(self, content_type: str = "text/plain; charset=utf-8", status: int = 200):
        self.content_type = content_type
        self.status = status
        self._buffer = io.StringIO()

    def write(self, text: str) -> None:
        self._buffer.write(text)

    def getvalue(self) -> str:
        return self._buffer.getvalue()
