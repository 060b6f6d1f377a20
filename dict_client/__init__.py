"""Client library for DICT (RFC 2229) dictionary servers."""

from .config import DEFAULT_PORT, ClientConfig
from .connection import DictionaryConnection, connect
from .models import ALL_DATABASES, DEFAULT_STRATEGY, FIRST_MATCH, Database, Definition, MatchingStrategy
from .protocol import DictConnectionError, DictError, ProtocolError, Status, parse_status, read_status, split_atoms

__all__ = [
    "ALL_DATABASES",
    "ClientConfig",
    "DEFAULT_PORT",
    "DEFAULT_STRATEGY",
    "Database",
    "Definition",
    "DictConnectionError",
    "DictError",
    "DictionaryConnection",
    "FIRST_MATCH",
    "MatchingStrategy",
    "ProtocolError",
    "Status",
    "connect",
    "parse_status",
    "read_status",
    "split_atoms",
]
