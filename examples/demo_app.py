"""
Demo: a tiny ASGI app wrapped by the recoverer.

Run with:
    RECOVERER_SHOW=true RECOVERER_EXPORT_VARS=true python examples/demo_app.py

then open http://127.0.0.1:8000/boom in a browser (HTML report), or
``curl http://127.0.0.1:8000/boom`` (plain text report).
"""

import logging

import uvicorn

from recoverer import InterceptorRejection, Options, Recoverer, expvar, panic

logging.basicConfig(level=logging.INFO)

hits = expvar.publish("demo.hits", expvar.Int())
panics = expvar.publish("demo.panics", expvar.Int())


async def app(scope, receive, send):
    if scope["type"] != "http":
        return

    hits.add(1)
    if scope["path"] == "/boom":
        panic("something went terribly wrong")
    if scope["path"] == "/divide":
        1 / 0

    await send({
        "type": "http.response.start",
        "status": 200,
        "headers": [(b"content-type", b"text/plain; charset=utf-8")],
    })
    await send({"type": "http.response.body", "body": b"try /boom or /divide\n"})


def count_panics(scope, fault, file, line):
    panics.add(1)
    # Hide details from anyone not on localhost.
    client = scope.get("client") or ("", 0)
    if client[0] not in ("127.0.0.1", "::1"):
        return InterceptorRejection("remote client")
    return None


application = Recoverer(app, Options.from_env(interceptor=count_panics))


if __name__ == "__main__":
    uvicorn.run(application, host="127.0.0.1", port=8000)
