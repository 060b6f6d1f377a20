"""Network client for DICT (RFC 2229) dictionary servers."""

from __future__ import annotations

import logging
import re
import socket
import threading
from contextlib import contextmanager
from typing import Any, Iterator, TextIO

from .config import ClientConfig
from .decoders import DECODERS, Command
from .models import ALL_DATABASES, DEFAULT_STRATEGY, Database, Definition, MatchingStrategy
from .protocol import DictConnectionError, ProtocolError, Status, encode_command, read_status


logger = logging.getLogger(__name__)

_ANGLE_RE = re.compile(r"<([^<>]*)>")


def _name_of(value: Database | MatchingStrategy | str) -> str:
    return value if isinstance(value, str) else value.name


def parse_greeting(detail: str) -> tuple[list[str], str | None]:
    """Return the capability list and message id advertised in a 220 banner."""
    groups = _ANGLE_RE.findall(detail)
    if not groups:
        return [], None
    message_id = f"<{groups[-1]}>"
    if len(groups) == 1:
        return [], message_id
    capabilities = [cap for cap in groups[-2].split(".") if cap]
    return capabilities, message_id


class DictionaryConnection:
    """A single DICT session over a line-oriented text stream.

    Only one command may be outstanding at a time. Every public command holds
    the session lock until its reply has been read in full, so threads sharing
    a connection are serialized rather than interleaved.
    """

    def __init__(
        self,
        rfile: TextIO,
        wfile: TextIO,
        sock: socket.socket | None = None,
        *,
        config: ClientConfig | None = None,
    ):
        self.config = config or ClientConfig()
        self._rfile = rfile
        self._wfile = wfile
        self._sock = sock
        self._lock = threading.Lock()
        self._owner: int | None = None
        self._closed = False
        self._failed = False

        try:
            greeting = read_status(rfile)
        except ProtocolError as exc:
            self._release()
            raise DictConnectionError(f"No greeting from server: {exc}") from exc
        if greeting.code != 220:
            self._release()
            raise DictConnectionError(f"Unexpected greeting: {greeting}")

        self.greeting: Status = greeting
        self.capabilities, self.message_id = parse_greeting(greeting.detail)

    @classmethod
    def open(
        cls,
        host: str | None = None,
        port: int | None = None,
        *,
        config: ClientConfig | None = None,
    ) -> "DictionaryConnection":
        config = config or ClientConfig()
        host = host or config.host
        port = port or config.port

        try:
            sock = socket.create_connection((host, port), timeout=config.timeout)
        except OSError as exc:
            raise DictConnectionError(f"Could not connect to {host}:{port}: {exc}") from exc

        rfile = sock.makefile("r", encoding=config.encoding, errors="replace", newline="")
        wfile = sock.makefile("w", encoding=config.encoding, newline="")
        logger.debug("Connected to %s:%s", host, port)
        return cls(rfile, wfile, sock, config=config)

    def __enter__(self) -> "DictionaryConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Send QUIT and release the stream. Never raises.

        Called from inside a command on the same thread, the stream is released
        without QUIT and the interrupted command fails.
        """
        if self._owner == threading.get_ident():
            self._shutdown(send_quit=False)
            return
        with self._lock:
            self._shutdown(send_quit=True)

    def _shutdown(self, send_quit: bool) -> None:
        if self._closed:
            return
        self._closed = True
        errors: list[BaseException] = []
        if send_quit:
            try:
                self._send(Command.QUIT.value)
            except Exception as exc:  # noqa: BLE001 - teardown is best-effort
                errors.append(exc)
        errors.extend(self._release())
        for exc in errors:
            logger.debug("Ignored error while closing connection: %r", exc)

    def define(self, word: str, database: Database | str = ALL_DATABASES) -> list[Definition]:
        return self._request(Command.DEFINE, _name_of(database), word)

    def match(
        self,
        word: str,
        strategy: MatchingStrategy | str = DEFAULT_STRATEGY,
        database: Database | str = ALL_DATABASES,
    ) -> list[str]:
        return self._request(Command.MATCH, _name_of(database), _name_of(strategy), word)

    def get_databases(self) -> dict[str, Database]:
        return self._request(Command.SHOW_DB)

    def get_strategies(self) -> list[MatchingStrategy]:
        return self._request(Command.SHOW_STRAT)

    def get_database_info(self, database: Database | str) -> str:
        return self._request(Command.SHOW_INFO, _name_of(database), final_status=self.config.info_final_status)

    @contextmanager
    def _exchange(self) -> Iterator[None]:
        if self._owner == threading.get_ident():
            raise RuntimeError("A command is already in progress on this connection")
        with self._lock:
            if self._closed:
                raise RuntimeError("Client is not connected")
            if self._failed:
                raise ProtocolError("Connection is unusable after an earlier protocol error")
            self._owner = threading.get_ident()
            try:
                yield
            except ProtocolError:
                self._failed = True
                raise
            finally:
                self._owner = None

    def _request(self, command: Command, *params: str, **options: Any) -> Any:
        with self._exchange():
            self._send(command.value, *params)
            status = read_status(self._rfile)
            return DECODERS[command](self._rfile, status, strict=self.config.strict, **options)

    def _send(self, *parts: str) -> None:
        line = encode_command(*parts, line_terminator=self.config.line_terminator)
        logger.debug("-> %s", line.rstrip())
        try:
            self._wfile.write(line)
            self._wfile.flush()
        except (OSError, ValueError) as exc:
            raise ProtocolError(f"Failed to send command: {exc}") from exc

    def _release(self) -> list[BaseException]:
        errors: list[BaseException] = []
        for resource in (self._rfile, self._wfile, self._sock):
            if resource is None:
                continue
            try:
                resource.close()
            except Exception as exc:  # noqa: BLE001 - teardown is best-effort
                errors.append(exc)
        return errors


def connect(host: str | None = None, port: int | None = None, *, config: ClientConfig | None = None) -> DictionaryConnection:
    return DictionaryConnection.open(host, port, config=config)
