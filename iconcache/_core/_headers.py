from __future__ import annotations

from dataclasses import dataclass
from typing import (
    Any,
    Dict,
    Iterator,
    List,
    Mapping,
    MutableMapping,
    Optional,
    Tuple,
    Union,
)


class Headers(MutableMapping[str, str]):
    """
    Case-insensitive header mapping.

    Names are stored lower-cased, each name keeps the list of values it was
    given. Reading a name joins its values with ``", "``.
    """

    def __init__(self, headers: Mapping[str, Union[str, List[str]]]) -> None:
        self._headers = {k.lower(): ([v] if isinstance(v, str) else v[:]) for k, v in headers.items()}

    def get_list(self, key: str) -> Optional[List[str]]:
        return self._headers.get(key.lower(), None)

    def raw(self) -> Dict[str, List[str]]:
        return {key: values[:] for key, values in self._headers.items()}

    def copy(self) -> "Headers":
        return Headers(self._headers)

    def multi_items(self) -> List[Tuple[str, str]]:
        return [(key, value) for key, values in self._headers.items() for value in values]

    def __getitem__(self, key: str) -> str:
        return ", ".join(self._headers[key.lower()])

    def __setitem__(self, key: str, value: str) -> None:
        self._headers.setdefault(key.lower(), []).append(value)

    def __delitem__(self, key: str) -> None:
        del self._headers[key.lower()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._headers

    def __iter__(self) -> Iterator[str]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return repr(self._headers)

    def __eq__(self, other_headers: Any) -> bool:
        return isinstance(other_headers, Headers) and self._headers == other_headers._headers


@dataclass
class CacheControl:
    """The Cache-Control directives the icon cache looks at. Others are ignored."""

    no_store: bool = False


def split_directives(value: str) -> List[str]:
    """
    Split a header value on commas that are not inside a quoted string.

    Examples:
        >>> split_directives('no-store, max-age=10')
        ['no-store', 'max-age=10']
        >>> split_directives('private="a, b", no-cache')
        ['private="a, b"', 'no-cache']
    """
    parts: List[str] = []
    current: List[str] = []
    quoted = False
    escaped = False

    for char in value:
        if escaped:
            current.append(char)
            escaped = False
        elif char == "\\" and quoted:
            current.append(char)
            escaped = True
        elif char == '"':
            current.append(char)
            quoted = not quoted
        elif char == "," and not quoted:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    parts.append("".join(current).strip())
    return [part for part in parts if part]


def parse_cache_control(value: Optional[str]) -> CacheControl:
    """
    Parse a Cache-Control header value.

    Examples:
        >>> cc = parse_cache_control("public, no-store")
        >>> cc.no_store
        True
        >>> parse_cache_control(None).no_store
        False
    """
    cc = CacheControl()
    if not value:
        return cc

    for directive in split_directives(value):
        name, _, _ = directive.partition("=")
        if name.strip().lower() == "no-store":
            cc.no_store = True
    return cc


def parse_content_type(value: Optional[str]) -> Tuple[str, Dict[str, str]]:
    """
    Split a Content-Type value into its lower-cased media type and parameters.

    Examples:
        >>> parse_content_type("image/PNG")
        ('image/png', {})
        >>> parse_content_type('text/html; Charset="GBK"')
        ('text/html', {'charset': 'GBK'})
        >>> parse_content_type(None)
        ('', {})
    """
    if not value:
        return "", {}

    media_type, *raw_params = value.split(";")
    params: Dict[str, str] = {}
    for raw_param in raw_params:
        name, sep, param_value = raw_param.partition("=")
        if not sep:
            continue
        params[name.strip().lower()] = param_value.strip().strip('"')
    return media_type.strip().lower(), params
