import httpx
import pytest
from httpx import MockTransport

from iconcache import TransportError, UpstreamStatusError
from iconcache._fetch import decode_text
from iconcache.httpx import AsyncFetcher


def create_fetcher(handler, **client_kwargs) -> AsyncFetcher:  # type: ignore[no-untyped-def]
    return AsyncFetcher(client=httpx.AsyncClient(transport=MockTransport(handler=handler), **client_kwargs))


@pytest.mark.anyio
async def test_fetch_text() -> None:
    fetcher = create_fetcher(lambda request: httpx.Response(200, text='["q",["query","question"]]'))

    assert await fetcher.fetch("https://suggest.example.com/?q=q") == '["q",["query","question"]]'


@pytest.mark.anyio
@pytest.mark.parametrize("charset", ["gbk", "GBK", "gb2312"])
async def test_legacy_charsets_are_transcoded(charset: str) -> None:
    body = '["你好",["你好世界"]]'.encode("gbk")
    fetcher = create_fetcher(
        lambda request: httpx.Response(200, headers={"Content-Type": f"text/javascript; charset={charset}"}, content=body)
    )

    assert await fetcher.fetch("https://suggest.example.com/?wd=%E4%BD%A0%E5%A5%BD") == '["你好",["你好世界"]]'


@pytest.mark.anyio
async def test_other_charsets_use_the_declared_encoding() -> None:
    fetcher = create_fetcher(
        lambda request: httpx.Response(
            200, headers={"Content-Type": "text/plain; charset=iso-8859-1"}, content="café".encode("latin-1")
        )
    )

    assert await fetcher.fetch("https://example.com/") == "café"


def test_undecodable_bytes_are_replaced() -> None:
    response = httpx.Response(200, headers={"Content-Type": "text/plain; charset=gbk"}, content=b"ok\xff")

    assert decode_text(response) == "ok\ufffd"


def test_missing_content_type_is_decoded_by_httpx() -> None:
    response = httpx.Response(200, content="héllo".encode("utf-8"))

    assert decode_text(response) == "héllo"


@pytest.mark.anyio
async def test_return_response() -> None:
    fetcher = create_fetcher(lambda request: httpx.Response(200, headers={"Content-Type": "image/png"}, content=b"x"))

    response = await fetcher.fetch("https://example.com/favicon.png", return_response=True)

    assert isinstance(response, httpx.Response)
    assert response.headers["Content-Type"] == "image/png"


@pytest.mark.anyio
async def test_error_status_is_raised() -> None:
    fetcher = create_fetcher(lambda request: httpx.Response(404))

    with pytest.raises(UpstreamStatusError, match="HTTP error! status: 404") as exc_info:
        await fetcher.fetch("https://example.com/missing")

    assert exc_info.value.status_code == 404


@pytest.mark.anyio
async def test_transport_error_is_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(TransportError, match="timed out") as exc_info:
        await create_fetcher(handler).fetch("https://example.com/")

    assert isinstance(exc_info.value.__cause__, httpx.ConnectTimeout)


@pytest.mark.anyio
async def test_redirects_are_followed_by_default() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": "https://example.com/new"})
        return httpx.Response(200, text="new")

    fetcher = create_fetcher(handler)

    assert await fetcher.fetch("https://example.com/old") == "new"
    with pytest.raises(UpstreamStatusError, match="status: 301"):
        await fetcher.fetch("https://example.com/old", follow_redirects=False)


@pytest.mark.anyio
async def test_referer_is_not_sent() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers.get("Referer"))
        return httpx.Response(200, text="ok")

    fetcher = create_fetcher(handler, headers={"Referer": "https://extension.example/newtab"})

    await fetcher.fetch("https://example.com/")

    assert seen == [None]


@pytest.mark.anyio
async def test_aclose_only_closes_an_owned_client() -> None:
    client = httpx.AsyncClient(transport=MockTransport(handler=lambda request: httpx.Response(200)))
    await AsyncFetcher(client=client).aclose()
    assert client.is_closed is False

    fetcher = AsyncFetcher()
    await fetcher.aclose()
    assert fetcher.client.is_closed is True
