import os
from typing import Dict, List, Optional

import pytest

from iconcache import Headers, Response
from iconcache._utils import make_async_iterator


def icon_response(
    status_code: int = 200,
    content: bytes = b"icon-bytes",
    headers: Optional[Dict[str, str]] = None,
    url: Optional[str] = None,
) -> Response:
    """Build an internal response that carries ``content`` as its body."""
    return Response(
        status_code=status_code,
        headers=Headers(headers if headers is not None else {"Content-Type": "image/png"}),
        stream=make_async_iterator([content]),
        url=url,
        metadata={},
    )


class FakeSender:
    """
    A request sender that replays queued responses and records every URL it was asked for.

    Queue an exception instance to have it raised instead of a response.
    """

    def __init__(self, *responses: object) -> None:
        self.responses: List[object] = list(responses)
        self.urls: List[str] = []

    async def __call__(self, request):  # type: ignore[no-untyped-def]
        self.urls.append(request.url)
        if not self.responses:
            raise RuntimeError("No more mocked responses available")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    @property
    def calls(self) -> int:
        return len(self.urls)


@pytest.fixture()
def use_temp_dir(tmpdir):
    cur_dir = os.getcwd()
    os.chdir(tmpdir)
    yield
    os.chdir(cur_dir)
