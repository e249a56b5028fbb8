"""
formbind Environment Management
===============================

Typed, prefixed access to environment variables, with `.env` support.

A `.env` file fills in variables that are not already set in the
process environment:

    # .env
    export FORMBIND_LOG_LEVEL=debug
    FORMBIND_PAYLOAD_KEY="body"
    FORMBIND_ERRORS_KEY=${FORMBIND_PAYLOAD_KEY}_errors
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple, TypeVar, Union

T = TypeVar("T")

TRUE_VALUES = frozenset({"true", "1", "yes", "on"})
FALSE_VALUES = frozenset({"false", "0", "no", "off", ""})

_REFERENCE = re.compile(r"\$\{([^}]+)\}|\$(\w+)")


def find_dotenv(start: Optional[Path] = None, depth: int = 3) -> Optional[Path]:
    """
    Look for a `.env` file in a directory and up to `depth` parents.

    Args:
        start: First directory searched (current directory by default)
        depth: Number of parent directories searched

    Returns:
        Path of the first file found, or None
    """
    start = start or Path.cwd()

    for directory in [start, *list(start.parents)[:depth]]:
        candidate = directory / ".env"
        if candidate.is_file():
            return candidate

    return None


def parse_dotenv(text: str, lookup: Callable[[str], str]) -> Iterator[Tuple[str, str]]:
    """
    Yield `(key, value)` pairs from `.env` text.

    Blank lines, comments and lines without `=` are skipped. Matching
    outer quotes are stripped, and `$VAR` / `${VAR}` references are
    expanded through `lookup`.
    """
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        if line.startswith("export "):
            line = line[len("export "):].lstrip()

        key, sep, value = line.partition("=")
        if not sep:
            continue

        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]

        value = _REFERENCE.sub(lambda m: lookup(m.group(1) or m.group(2)), value)
        yield key.strip(), value


class Env:
    """
    Environment variable reader.

    Every lookup key gets `prefix` prepended. Values from a loaded
    `.env` file never replace variables already set in the process
    environment unless `override` is set.

    Example:
        env = Env(prefix="FORMBIND_").load()

        tag_key = env.str("TAG_KEY", default="binding")
        name_keys = env.list("NAME_KEYS", default=["form", "json"])
    """

    def __init__(
        self,
        env_file: Optional[Union[str, Path]] = None,
        prefix: str = "",
        override: bool = False,
    ):
        """
        Initialize environment reader.

        Args:
            env_file: Path to .env file (searched for when omitted)
            prefix: Prefix added to every key lookup
            override: Let .env values replace existing variables
        """
        self._env_file = Path(env_file) if env_file else None
        self._prefix = prefix
        self._override = override
        self._file_values: Dict[str, str] = {}

    def load(self, env_file: Optional[Union[str, Path]] = None) -> "Env":
        """
        Load a .env file into the process environment, if one exists.

        Returns:
            Self for chaining
        """
        path = Path(env_file) if env_file else (self._env_file or find_dotenv())
        if path is None or not path.is_file():
            return self

        for key, value in parse_dotenv(path.read_text(), self._resolve):
            self._file_values[key] = value
            if self._override or key not in os.environ:
                os.environ[key] = value

        return self

    def _resolve(self, name: str) -> str:
        return os.environ.get(name, self._file_values.get(name, ""))

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get the raw value of a prefixed key."""
        name = self._prefix + key
        if name in os.environ:
            return os.environ[name]
        return self._file_values.get(name, default)

    def _typed(self, key: str, default: Optional[T], convert: Callable[[str], T], kind: str) -> Optional[T]:
        value = self.get(key)
        if value is None:
            return default
        try:
            return convert(value)
        except ValueError:
            raise ValueError(
                f"Environment variable '{self._prefix}{key}' is not a valid {kind}"
            ) from None

    def str(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get string value."""
        return self.get(key, default)

    def int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        """Get integer value."""
        return self._typed(key, default, int, "integer")

    def bool(self, key: str, default: Optional[bool] = None) -> Optional[bool]:
        """Get boolean value (true/false, 1/0, yes/no, on/off)."""
        return self._typed(key, default, _parse_bool, "boolean")

    def list(
        self,
        key: str,
        default: Optional[List[str]] = None,
        separator: str = ",",
    ) -> Optional[List[str]]:
        """Get list value; items are stripped and empty items dropped."""
        value = self.get(key)
        if value is None:
            return default
        return [item.strip() for item in value.split(separator) if item.strip()]

    def __contains__(self, key: str) -> bool:
        name = self._prefix + key
        return name in os.environ or name in self._file_values


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ValueError(value)
