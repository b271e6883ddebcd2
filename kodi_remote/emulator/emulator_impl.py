# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Kodi emulator.

Provides a simple emulation of Kodi's raw TCP JSON-RPC service, enough to
exercise the client end to end.
"""

from __future__ import annotations

import asyncio
import json

from ..internal_types import *
from ..pkg_logging import logger
from ..constants import DEFAULT_PORT, JSONRPC_VERSION

from .session import KodiEmulatorSession

METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
PARSE_ERROR = -32700

DEFAULT_VERSION: JsonableDict = {"major": 13, "minor": 5, "patch": 0}

class EmulatorMethodError(Exception):
    """Raised by a method handler to produce a JSON-RPC error reply."""
    code: int

    def __init__(self, code: int, message: str):
        super().__init__(message)
        self.code = code

class KodiEmulator(AsyncContextManager['KodiEmulator']):
    bind_addr: str
    port: int
    sessions: Dict[int, KodiEmulatorSession]
    next_session_id: int = 0
    connection_count: int = 0
    requests: asyncio.Queue[Optional[Tuple[KodiEmulatorSession, bytes]]]
    received: List[JsonableDict]
    """Every well-formed request received, in order."""
    server: Optional[asyncio.Server] = None
    handler_task: Optional[asyncio.Task[None]] = None
    final_result: Optional[asyncio.Future[None]] = None

    active_players: List[JsonableDict]
    version: JsonableDict
    speed: int = 0
    shutdown_requested: bool = False
    input_actions: List[str]

    notify_before_reply: bool = False
    """If True, a Player.OnPlay notification is sent ahead of every reply."""
    fragment_replies: bool = False
    """If True, every reply is written in two separate chunks."""
    reply_delay: float = 0.0
    """Seconds to wait before replying."""

    def __init__(
            self,
            bind_addr: Optional[str] = None,
            port: int = DEFAULT_PORT,
            active_players: Optional[List[JsonableDict]] = None,
            version: Optional[JsonableDict] = None,
          ):
        self.bind_addr = '127.0.0.1' if bind_addr is None else bind_addr
        self.port = port
        self.sessions = {}
        self.requests = asyncio.Queue()
        self.received = []
        self.input_actions = []
        self.active_players = [{"playerid": 1, "type": "video"}] if active_players is None else active_players
        self.version = DEFAULT_VERSION if version is None else version

    def alloc_session_id(self, session: KodiEmulatorSession) -> int:
        result = self.next_session_id
        self.next_session_id += 1
        self.connection_count += 1
        self.sessions[result] = session
        return result

    def free_session_id(self, session_id: int) -> None:
        self.sessions.pop(session_id, None)

    def on_line_received(self, session: KodiEmulatorSession, line: bytes) -> None:
        """Called when a framed message is received from a session."""
        self.requests.put_nowait((session, line))

    def drop_connections(self) -> None:
        """Closes every open client connection, as Kodi does when it exits."""
        for session in list(self.sessions.values()):
            session.close()

    @property
    def methods(self) -> List[str]:
        """The method names of all received requests, in order."""
        return [str(r.get("method")) for r in self.received]

    def _check_player(self, params: JsonableDict) -> None:
        player_ids = [p.get("playerid") for p in self.active_players]
        if params.get("playerid") not in player_ids:
            raise EmulatorMethodError(INVALID_PARAMS, f"Invalid playerid: {params.get('playerid')!r}")

    async def handle_method(self, method: str, params: JsonableDict) -> Jsonable:
        """Handle a single method call, and return its result.

        Raise EmulatorMethodError to send a JSON-RPC error reply.
        """
        if method == "JSONRPC.Version":
            return {"version": self.version}
        if method == "System.Shutdown":
            self.shutdown_requested = True
            return "OK"
        if method == "Player.GetActivePlayers":
            return self.active_players
        if method == "Player.PlayPause":
            self._check_player(params)
            self.speed = 0 if self.speed != 0 else 1
            return {"speed": self.speed}
        if method == "Player.SetSpeed":
            self._check_player(params)
            speed = params.get("speed")
            if not isinstance(speed, (int, float)):
                raise EmulatorMethodError(INVALID_PARAMS, f"Invalid speed: {speed!r}")
            self.speed = int(speed)
            return {"speed": self.speed}
        if method.startswith("Input."):
            self.input_actions.append(method[6:])
            return "OK"
        raise EmulatorMethodError(METHOD_NOT_FOUND, "Method not found.")

    async def handle_request_line(self, line: bytes) -> Optional[JsonableDict]:
        """Handle a single request message, and return the reply, or None for notifications."""
        try:
            request = json.loads(line.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return {"jsonrpc": JSONRPC_VERSION, "id": None, "error": {"code": PARSE_ERROR, "message": "Parse error."}}
        if not isinstance(request, dict):
            return {"jsonrpc": JSONRPC_VERSION, "id": None, "error": {"code": PARSE_ERROR, "message": "Parse error."}}
        self.received.append(request)
        if "id" not in request:
            return None
        reply: JsonableDict = {"jsonrpc": JSONRPC_VERSION, "id": request["id"]}
        params = request.get("params") or {}
        try:
            reply["result"] = await self.handle_method(str(request.get("method")), params)
        except EmulatorMethodError as e:
            reply["error"] = {"code": e.code, "message": str(e)}
        return reply

    async def send_reply(self, session: KodiEmulatorSession, reply: JsonableDict) -> None:
        if self.notify_before_reply:
            notification = {
                "jsonrpc": JSONRPC_VERSION,
                "method": "Player.OnPlay",
                "params": {"data": {"player": {"playerid": 1}}, "sender": "xbmc"},
              }
            session.write(json.dumps(notification).encode('utf-8') + b'\n')
        data = json.dumps(reply).encode('utf-8') + b'\n'
        if self.fragment_replies:
            half = len(data) // 2
            session.write(data[:half])
            await asyncio.sleep(0.01)
            session.write(data[half:])
        else:
            session.write(data)

    async def handle_requests(self) -> None:
        """Handle requests from sessions."""
        while True:
            session_and_line = await self.requests.get()
            try:
                if session_and_line is None:
                    logger.debug("Emulator handler: Received EOF; exiting")
                    break
                session, line = session_and_line
                try:
                    logger.debug(f"{session}: Emulator handler: received {line!r}")
                    reply = await self.handle_request_line(line)
                    if reply is not None:
                        if self.reply_delay > 0:
                            await asyncio.sleep(self.reply_delay)
                        logger.debug(f"{session}: Emulator handler: replying {reply}")
                        await self.send_reply(session, reply)
                except asyncio.CancelledError:
                    logger.debug(f"{session}: Handler task cancelled; exiting")
                    break
                except Exception as e:
                    logger.exception(f"{session}: Handler task: Exception while handling request; killing session: {e}")
                    session.close()
            finally:
                self.requests.task_done()

    async def start(self) -> None:
        loop = asyncio.get_running_loop()
        self.final_result = loop.create_future()
        try:
            self.handler_task = asyncio.create_task(self.handle_requests())
            self.server = await loop.create_server(
                lambda: KodiEmulatorSession(self),
                host=self.bind_addr,
                port=self.port)
            if self.port == 0:
                self.port = self.server.sockets[0].getsockname()[1]
            logger.debug(f"Emulator: Listening on {self.bind_addr}:{self.port}")
            await self.server.start_serving()
        except BaseException as e:
            self.set_final_result(e)
            try:
                await self.wait_closed()
            except BaseException:
                logger.debug("Emulator: Exception while cleaning up failed start", exc_info=True)
            raise

    def close(self, exc: Optional[BaseException]=None) -> None:
        """Stops the Emulator."""
        self.set_final_result(exc)

    async def wait_closed(self) -> None:
        """Waits for the emulator to be fully closed. Does not initiate shutdown."""
        assert self.final_result is not None
        try:
            await self.final_result
        finally:
            try:
                if self.server is not None:
                    try:
                        self.server.close()
                        self.drop_connections()
                    finally:
                        await self.server.wait_closed()
            finally:
                self.server = None
                if self.handler_task is not None:
                    try:
                        await self.handler_task
                    finally:
                        self.handler_task = None

    def set_final_result(self, exc: Optional[BaseException]=None) -> None:
        assert self.final_result is not None
        if not self.final_result.done():
            if exc is None:
                logger.debug("Emulator: Setting final result to success")
                self.final_result.set_result(None)
            else:
                logger.debug(f"Emulator: Setting final exception: {exc}")
                self.final_result.set_exception(exc)
            self.requests.put_nowait(None)
            if self.server is not None:
                self.server.close()

    async def __aenter__(self) -> KodiEmulator:
        await self.start()
        return self

    async def __aexit__(self,
            exc_type: Optional[type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
      ) -> None:
        self.set_final_result(exc)
        try:
            # ensure that final_result has been awaited
            await self.wait_closed()
        except Exception:
            logger.debug("Emulator: Exception while closing", exc_info=True)

    def __str__(self) -> str:
        return f"KodiEmulator({self.bind_addr}:{self.port})"

    def __repr__(self) -> str:
        return str(self)
