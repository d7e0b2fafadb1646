from __future__ import annotations

from typing import Any, Mapping, Optional

import msgpack
from typing_extensions import cast

from iconcache._core._headers import Headers
from iconcache._core.models import Entry, Response
from iconcache._utils import make_async_iterator


def filter_out_iconcache_metadata(data: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if not k.startswith("iconcache_")}


def pack(entry: Entry) -> bytes:
    """
    Serialize everything about an entry except its body.

    The body is kept in its own column so it can be stored as a plain BLOB.
    """
    return cast(
        bytes,
        msgpack.packb(
            {
                "key": entry.key,
                "response": {
                    "status_code": entry.response.status_code,
                    "headers": entry.response.headers.raw(),
                    "url": entry.response.url,
                    "extra": filter_out_iconcache_metadata(entry.response.metadata),
                },
                "stored_at": entry.stored_at,
            }
        ),
    )


def unpack(value: Optional[bytes], body: bytes = b"") -> Optional[Entry]:
    if value is None:
        return None

    data = msgpack.unpackb(value)
    return Entry(
        key=data["key"],
        response=Response(
            status_code=data["response"]["status_code"],
            headers=Headers(data["response"]["headers"]),
            stream=make_async_iterator([body]),
            url=data["response"]["url"],
            metadata=data["response"]["extra"],
        ),
        stored_at=data["stored_at"],
    )
