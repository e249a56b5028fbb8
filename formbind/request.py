"""
formbind Request Context
========================

Read-only view of an ASGI HTTP request, handed to validation hooks so
they can look at the method, path, headers, query string and cookies.

Body decoding belongs to the framework's binder; this object never
reads the body. `state` is the one mutable part: middleware uses it to
pass the decoded payload in and the validation errors out.
"""

from __future__ import annotations

from http.cookies import CookieError, SimpleCookie
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qs, urlencode

from formbind.utils.env import TRUE_VALUES


def _text(value: Union[str, bytes]) -> str:
    return value.decode("latin-1") if isinstance(value, bytes) else value


class Headers(Mapping[str, str]):
    """
    Case-insensitive header mapping.

    Repeated headers are folded into one value, joined with ", "
    (or "; " for Cookie).

    Example:
        headers = Headers([(b"content-type", b"application/json")])
        headers["Content-Type"]  # "application/json"
    """

    __slots__ = ("_store",)

    def __init__(self, raw: Iterable[Tuple[Union[str, bytes], Union[str, bytes]]] = ()) -> None:
        store: Dict[str, str] = {}

        for name, value in raw:
            name, value = _text(name).lower(), _text(value)
            if name in store:
                joiner = "; " if name == "cookie" else ", "
                store[name] = store[name] + joiner + value
            else:
                store[name] = value

        self._store = store

    def __getitem__(self, name: str) -> str:
        return self._store[name.lower()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._store

    def __iter__(self) -> Iterator[str]:
        return iter(self._store)

    def __len__(self) -> int:
        return len(self._store)

    def to_dict(self) -> Dict[str, str]:
        return dict(self._store)


class QueryParams(Mapping[str, str]):
    """
    Query string parameters.

    Indexing gives the first value of a key; `get_list` gives all of
    them.

    Example:
        params = QueryParams.parse("tag=a&tag=b&page=2")
        params["tag"]              # "a"
        params.get_list("tag")     # ["a", "b"]
        params.get_int("page", 1)  # 2
    """

    __slots__ = ("_values",)

    def __init__(self, values: Optional[Mapping[str, List[str]]] = None) -> None:
        self._values: Dict[str, List[str]] = {k: list(v) for k, v in (values or {}).items()}

    @classmethod
    def parse(cls, query_string: str) -> "QueryParams":
        return cls(parse_qs(query_string, keep_blank_values=True))

    def __getitem__(self, key: str) -> str:
        values = self._values[key]
        if not values:
            raise KeyError(key)
        return values[0]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def get_list(self, key: str) -> List[str]:
        """All values of a key, in query order."""
        return list(self._values.get(key, []))

    def get_int(self, key: str, default: int = 0) -> int:
        """First value as int; default when missing or not a number."""
        try:
            return int(self[key])
        except (KeyError, ValueError):
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key)
        if value is None:
            return default
        return value.strip().lower() in TRUE_VALUES

    def to_dict(self) -> Dict[str, Union[str, List[str]]]:
        """Single values unwrapped, repeated ones kept as lists."""
        return {k: v[0] if len(v) == 1 else list(v) for k, v in self._values.items()}


class Request:
    """
    HTTP request context built from an ASGI scope.

    Example:
        request = Request.build("POST", "/posts", headers={"X-Api-Version": "2"})
        request.headers.get("x-api-version")  # "2"
    """

    __slots__ = (
        "scope",
        "method",
        "path",
        "query_string",
        "query",
        "headers",
        "cookies",
        "state",
    )

    def __init__(self, scope: Mapping[str, Any]) -> None:
        self.scope = scope
        self.method: str = str(scope.get("method") or "GET").upper()
        self.path: str = scope.get("path") or "/"
        self.query_string: str = _text(scope.get("query_string") or b"")
        self.query = QueryParams.parse(self.query_string)
        self.headers = Headers(scope.get("headers") or ())
        self.cookies = _parse_cookies(self.headers.get("cookie"))
        self.state: Dict[str, Any] = dict(scope.get("state") or {})

    @classmethod
    def build(
        cls,
        method: str = "GET",
        path: str = "/",
        headers: Optional[Mapping[str, str]] = None,
        query: Optional[Mapping[str, Any]] = None,
        scheme: str = "http",
    ) -> "Request":
        """Create a request without an ASGI server, e.g. for tests or scripts."""
        return cls(
            {
                "type": "http",
                "method": method,
                "path": path,
                "scheme": scheme,
                "query_string": urlencode(query or {}, doseq=True).encode("latin-1"),
                "headers": [
                    (name.lower().encode("latin-1"), value.encode("latin-1"))
                    for name, value in (headers or {}).items()
                ],
            }
        )

    @property
    def scheme(self) -> str:
        return self.scope.get("scheme") or "http"

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("content-type")

    @property
    def host(self) -> str:
        return self.headers.get("host", "")

    @property
    def url(self) -> str:
        url = f"{self.scheme}://{self.host}{self.path}"
        return f"{url}?{self.query_string}" if self.query_string else url

    @property
    def client(self) -> Tuple[str, int]:
        """Client (host, port); ("", 0) when the server did not say."""
        host, port = self.scope.get("client") or ("", 0)
        return host, port

    @property
    def is_secure(self) -> bool:
        return self.scheme in ("https", "wss")

    def __repr__(self) -> str:
        return f"<Request {self.method} {self.path}>"


def _parse_cookies(header: Optional[str]) -> Dict[str, str]:
    if not header:
        return {}

    jar = SimpleCookie()
    try:
        jar.load(header)
    except CookieError:
        return {}
    return {name: morsel.value for name, morsel in jar.items()}
