from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Database:
    name: str
    description: str = ""


@dataclass(frozen=True)
class MatchingStrategy:
    name: str
    description: str = ""


@dataclass
class Definition:
    word: str
    database_name: str
    body: list[str] = field(default_factory=list)

    def append_line(self, line: str) -> None:
        self.body.append(line)

    @property
    def text(self) -> str:
        return "\n".join(self.body)


ALL_DATABASES = Database("*", "All databases")
FIRST_MATCH = Database("!", "First database with a match")

DEFAULT_STRATEGY = MatchingStrategy(".", "Server default strategy")
