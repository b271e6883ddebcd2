# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
JSON-RPC 2.0 messages as exchanged with Kodi over raw TCP.

Every message is a single JSON object terminated by b'\n'.
"""

from __future__ import annotations

import json
import time

from ..internal_types import *
from ..constants import JSONRPC_VERSION
from ..exceptions import ReceiveError, RemoteError

def next_request_id(previous: Optional[str]=None) -> str:
    """Returns a request id derived from the current time in milliseconds.

    If previous is a numeric id that is not older than the current time, the
    result is previous + 1, so ids issued in the same millisecond stay distinct.
    """
    now_ms = int(time.time() * 1000)
    if previous is not None and previous.isdigit():
        now_ms = max(now_ms, int(previous) + 1)
    return str(now_ms)

class JsonRpcRequest:
    """A JSON-RPC request to Kodi.

    If id is None, one is assigned by the transport when the request is sent.
    """
    method: str
    params: Optional[JsonableDict]
    id: Optional[str]

    def __init__(
            self,
            method: str,
            params: Optional[JsonableDict]=None,
            id: Optional[str]=None,
          ):
        if method is None or method == '':
            raise ValueError("JSON-RPC request method must be set")
        self.method = method
        self.params = params
        self.id = id

    def to_jsonable(self) -> JsonableDict:
        result: JsonableDict = {
            "jsonrpc": JSONRPC_VERSION,
            "id": self.id,
            "method": self.method,
          }
        if self.params is not None:
            result["params"] = self.params
        return result

    def to_line(self) -> bytes:
        """Encodes the request as one framed line."""
        if self.id is None:
            raise ValueError(f"{self}: Request id has not been assigned")
        return json.dumps(self.to_jsonable()).encode('utf-8') + b'\n'

    def with_params(self, **kwargs: Jsonable) -> JsonRpcRequest:
        """Returns a copy of this request with additional params merged in."""
        params: JsonableDict = dict(self.params or {})
        params.update(kwargs)
        return JsonRpcRequest(self.method, params=params, id=self.id)

    def __str__(self) -> str:
        return f"JsonRpcRequest(id={self.id!r}, method={self.method!r}, params={self.params!r})"

    def __repr__(self) -> str:
        return str(self)

class JsonRpcErrorInfo:
    """The error member of a JSON-RPC reply."""
    code: int
    message: str
    data: Any

    def __init__(self, code: int, message: str, data: Any=None):
        self.code = code
        self.message = message
        self.data = data

    @classmethod
    def from_jsonable(cls, data: Jsonable) -> JsonRpcErrorInfo:
        if not isinstance(data, dict):
            return cls(-1, str(data))
        code = data.get("code", -1)
        if not isinstance(code, int):
            code = -1
        return cls(code, str(data.get("message", "Unknown error")), data.get("data"))

    def __str__(self) -> str:
        if self.data is not None:
            return f"[{self.code}] {self.message}: {self.data}"
        return f"[{self.code}] {self.message}"

class JsonRpcResponse:
    """A parsed JSON-RPC message received from Kodi.

    Messages without an id are server notifications (e.g., "Player.OnPlay").
    """
    id: Optional[str]
    result: Any
    error: Optional[JsonRpcErrorInfo]
    method: Optional[str]
    raw: JsonableDict

    def __init__(self, raw: JsonableDict):
        self.raw = raw
        raw_id = raw.get("id")
        self.id = None if raw_id is None else str(raw_id)
        self.result = raw.get("result")
        error = raw.get("error")
        self.error = None if error is None else JsonRpcErrorInfo.from_jsonable(error)
        method = raw.get("method")
        self.method = method if isinstance(method, str) else None

    @property
    def is_notification(self) -> bool:
        return self.id is None and self.method is not None

    @property
    def is_success(self) -> bool:
        return self.error is None

    def raise_for_error(self, method: Optional[str]=None) -> None:
        """Raises RemoteError if Kodi returned a JSON-RPC error."""
        if self.error is not None:
            raise RemoteError(self.error.code, self.error.message, self.error.data, method=method)

    @classmethod
    def from_line(cls, line: bytes) -> JsonRpcResponse:
        """Decodes one framed line. Raises ReceiveError if it is not a JSON object."""
        try:
            data = json.loads(line.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ReceiveError(f"Invalid JSON received from Kodi: {line[:200]!r}") from e
        if not isinstance(data, dict):
            raise ReceiveError(f"Expected a JSON object from Kodi, got {type(data).__name__}: {line[:200]!r}")
        return cls(data)

    def __str__(self) -> str:
        return f"JsonRpcResponse({json.dumps(self.raw)})"

    def __repr__(self) -> str:
        return str(self)
