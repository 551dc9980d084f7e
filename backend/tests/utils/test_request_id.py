import pytest
from app.main import request_id_middleware
from app.utils.request_id import REQUEST_ID_HEADER, generate_request_id, get_request_id, set_request_id
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient


def _make_app() -> FastAPI:
    app = FastAPI()

    @app.get("/check")
    async def check() -> dict[str, str]:
        return {"rid": get_request_id() or ""}

    app.middleware("http")(request_id_middleware)
    return app


def test_request_id_set_and_get() -> None:
    set_request_id("req-abc")
    assert get_request_id() == "req-abc"
    set_request_id(None)
    assert get_request_id() is None


def test_generated_request_ids_are_unique_hex() -> None:
    first, second = generate_request_id(), generate_request_id()
    assert first != second
    int(first, 16)


@pytest.mark.asyncio
async def test_request_id_middleware_generates_and_sets_header() -> None:
    transport = ASGITransport(app=_make_app())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/check")
    assert resp.status_code == 200
    assert resp.headers.get(REQUEST_ID_HEADER)
    assert resp.json()["rid"] == resp.headers[REQUEST_ID_HEADER]


@pytest.mark.asyncio
async def test_request_id_middleware_uses_incoming_header() -> None:
    incoming = "req-custom-123"
    transport = ASGITransport(app=_make_app())
    async with AsyncClient(transport=transport, base_url="http://test", headers={REQUEST_ID_HEADER: incoming}) as client:
        resp = await client.get("/check")
    assert resp.status_code == 200
    assert resp.headers[REQUEST_ID_HEADER] == incoming
    assert resp.json()["rid"] == incoming
