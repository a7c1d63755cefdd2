# /// script
# requires-python = ">=3.12"
# dependencies = [
#     "typoroute[otel] @ file:///${PROJECT_ROOT}/..",
#     "granian[uvloop]>=2.6.0,<3.0.0",
# ]
# ///
"""RSGI server demo.

Serves a small shop API with typo tolerant routing. Try:

    curl localhost:8000/produts
    curl localhost:8000/categores
    curl localhost:8000/usrs/1
    curl -X POST localhost:8000/user -d '{"name": "ada"}'
"""

import asyncio
import json
import logging
from json.decoder import JSONDecodeError

from granian.server.embed import Server

from typoroute import Router, TypoConfig, path_params, typo_correction, typo_tolerant
from typoroute.middleware.otel import otel
from typoroute.rsgi import HTTPProtocol, HTTPScope, RSGIHTTPHandler

ADDRESS = "127.0.0.1"
PORT = 8000

_products = {1: "kettle", 2: "teapot"}
_categories = ["kitchen", "garden"]
_users: dict[int, str] = {1: "grace"}


async def main() -> None:
    logging.basicConfig(level=logging.INFO)

    router = Router()
    router.use(otel())
    router.get("/", home)
    router.get("/products", get_products)
    router.get("/categories", get_categories)
    router.mount("/users", user_router(_users))
    router.not_found(
        typo_tolerant(
            router,
            fallback=not_found,
            config=TypoConfig(
                tolerance=2, log_corrections=True, apply_to_all_methods=True
            ),
        )
    )
    router.method_not_allowed(method_not_allowed)
    router.finalize()

    server = Server(router, address=ADDRESS, port=PORT, log_access=True)
    try:
        await server.serve()
    except asyncio.CancelledError:
        pass


async def not_found(_scope: HTTPScope, proto: HTTPProtocol) -> None:
    proto.response_str(404, [("Content-Type", "text/plain")], "Not found")


async def method_not_allowed(_scope: HTTPScope, proto: HTTPProtocol) -> None:
    proto.response_str(405, [("Content-Type", "text/plain")], "Method not allowed")


async def home(s: HTTPScope, p: HTTPProtocol) -> None:
    p.response_str(200, [("Content-Type", "text/plain")], "Welcome home")


async def get_products(s: HTTPScope, p: HTTPProtocol) -> None:
    _json(p, 200, [{"id": k, "name": v} for k, v in _products.items()])


async def get_categories(s: HTTPScope, p: HTTPProtocol) -> None:
    _json(p, 200, _categories)


def user_router(users: dict[int, str]) -> Router:
    router = Router()
    router.get("/:id", get_user(users))
    router.post("/", create_user(users))
    return router


# closure over handler to inject dependencies
def get_user(users: dict[int, str]) -> RSGIHTTPHandler:
    async def handler(s: HTTPScope, p: HTTPProtocol) -> None:
        try:
            user_id = int(path_params.get()["id"])
        except ValueError:
            p.response_str(404, [("Content-Type", "text/plain")], "Not found")
            return
        if user_id not in users:
            p.response_str(404, [("Content-Type", "text/plain")], "Not found")
            return
        body = {"id": user_id, "name": users[user_id]}
        correction = typo_correction.get()
        if correction is not None:
            body["corrected_from"] = correction.requested_path
        _json(p, 200, body)

    return handler


def create_user(users: dict[int, str]) -> RSGIHTTPHandler:
    async def handler(s: HTTPScope, p: HTTPProtocol) -> None:
        try:
            name = json.loads(await p())["name"]
        except (JSONDecodeError, KeyError, TypeError):
            p.response_str(422, [("Content-Type", "text/plain")], "Invalid json")
            return
        user_id = max(users, default=0) + 1
        users[user_id] = name
        _json(p, 201, {"id": user_id, "name": name})

    return handler


def _json(p: HTTPProtocol, status: int, payload: object) -> None:
    p.response_str(status, [("Content-Type", "application/json")], json.dumps(payload))


if __name__ == "__main__":
    asyncio.run(main())
