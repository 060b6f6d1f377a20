import os
from dataclasses import dataclass


DEFAULT_PORT = 2628


@dataclass(frozen=True)
class ClientConfig:
    host: str = "localhost"
    port: int = DEFAULT_PORT
    timeout: float | None = None
    encoding: str = "utf-8"
    line_terminator: str = "\r\n"
    strict: bool = False
    info_final_status: bool = False

    @classmethod
    def from_env(cls) -> "ClientConfig":
        timeout = os.environ.get("DICT_TIMEOUT")
        return cls(
            host=os.environ.get("DICT_HOST", cls.host),
            port=int(os.environ.get("DICT_PORT", cls.port)),
            timeout=float(timeout) if timeout else None,
            strict=os.environ.get("DICT_STRICT", "").lower() in {"1", "true", "yes"},
        )
