"""Test fixtures for kodi_remote tests."""

from collections.abc import Callable
from typing import Any

import pytest

from kodi_remote.client.client_transport import KodiClientTransport
from kodi_remote.client.client_config import KodiClientConfig
from kodi_remote.client.client_impl import KodiClient
from kodi_remote.protocol import JsonRpcErrorInfo, JsonRpcRequest, JsonRpcResponse

KODI_ENV_VARS = (
    "KODI_HOST",
    "KODI_PORT",
    "KODI_MAC",
    "KODI_SHUTDOWN",
    "KODI_TIMEOUT",
    "KODI_REMOTE_CONFIG",
)


@pytest.fixture(autouse=True)
def clean_kodi_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's KODI_* environment out of the tests."""
    for name in KODI_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class FakeTransport(KodiClientTransport):
    """Transport double that answers from a per-method script and records requests.

    Each script entry is a result value, a JsonRpcErrorInfo (sent back as a
    JSON-RPC error reply), an exception to raise, or a list of those consumed
    one per call. Unscripted methods answer "OK".
    """

    def __init__(self, script: dict[str, Any] | None = None) -> None:
        self.script: dict[str, Any] = dict(script or {})
        self.sent: list[JsonRpcRequest] = []
        self.closed = False
        self._next_id = 0

    @property
    def methods(self) -> list[str]:
        return [r.method for r in self.sent]

    async def send(self, request: JsonRpcRequest) -> JsonRpcResponse:
        if request.id is None:
            self._next_id += 1
            request.id = str(self._next_id)
        self.sent.append(request)
        outcome = self.script.get(request.method, "OK")
        if isinstance(outcome, list):
            outcome = outcome.pop(0) if len(outcome) > 1 else outcome[0]
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, JsonRpcErrorInfo):
            return JsonRpcResponse(
                {
                    "jsonrpc": "2.0",
                    "id": request.id,
                    "error": {"code": outcome.code, "message": outcome.message},
                }
            )
        return JsonRpcResponse({"jsonrpc": "2.0", "id": request.id, "result": outcome})

    def is_shutting_down(self) -> bool:
        return self.closed

    async def shutdown(self, exc: BaseException | None = None) -> None:
        self.closed = True

    async def wait(self) -> None:
        return None


@pytest.fixture
def make_client() -> Callable[..., tuple[KodiClient, FakeTransport]]:
    """Factory for a KodiClient wired to a FakeTransport.

    Keyword arguments other than script are passed to KodiClientConfig.
    """

    def _make(script: dict[str, Any] | None = None, **config_kwargs: Any) -> tuple[KodiClient, FakeTransport]:
        config_kwargs.setdefault("address", "kodi.local")
        transport = FakeTransport(script)
        client = KodiClient(transport, config=KodiClientConfig(**config_kwargs))
        return client, transport

    return _make
