from typing import Optional

from bistro.main import request_id_middleware
from bistro.utils.request_id import generate_request_id, get_request_id, set_request_id
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
import pytest


def test_request_id_set_and_get() -> None:
    set_request_id("req-abc")
    assert get_request_id() == "req-abc"
    set_request_id(None)
    assert get_request_id() is None


def test_generate_request_id_is_unique_and_prefixed() -> None:
    first = generate_request_id()
    second = generate_request_id(prefix="tick-")
    assert first and first != second
    assert second.startswith("tick-")


@pytest.mark.parametrize("incoming", [None, "req-custom-123"])
@pytest.mark.asyncio
async def test_request_id_middleware_echoes_the_id_it_used(incoming: Optional[str]) -> None:
    app = FastAPI()

    @app.get("/whoami")
    async def whoami() -> dict[str, str]:
        return {"rid": get_request_id() or ""}

    app.middleware("http")(request_id_middleware)

    headers = {"X-Request-ID": incoming} if incoming else {}
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test", headers=headers) as client:
        resp = await client.get("/whoami")

    assert resp.status_code == 200
    rid = resp.headers["X-Request-ID"]
    assert rid == (incoming or rid)
    assert resp.json()["rid"] == rid
    assert get_request_id() is None
