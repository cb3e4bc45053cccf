"""Shared fixtures for integration tests: a local site and a real headless browser."""

import threading
from collections import Counter
from collections.abc import AsyncGenerator, Iterator
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

PAGES = {
    "/": (
        "text/html; charset=utf-8",
        b"<!doctype html><html><head><link rel='stylesheet' href='/style.css'></head>"
        b"<body><h1 id='title'>Main Page</h1><p id='count'>6,912,345</p>"
        b"<script>fetch('/api/stats', {method: 'POST', body: 'q=articles'})"
        b".then(r => r.text()).then(t => { document.getElementById('count').dataset.api = t; });</script></body></html>",
    ),
    "/style.css": ("text/css", b"h1 { font-size: 20px; }"),
    "/api/stats": ("application/json", b'{"articles": 6912345}'),
}


class LocalSite:
    def __init__(self) -> None:
        self.hits: Counter[str] = Counter()
        self.online = True


def _handler_for(site: LocalSite):
    class Handler(BaseHTTPRequestHandler):
        def _serve(self) -> None:
            path = self.path.split("?", 1)[0]
            site.hits[path] += 1
            if path not in PAGES:
                self.send_error(404)
                return
            content_type, body = PAGES[path]
            self.send_response(200)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def do_GET(self) -> None:
            self._serve()

        def do_POST(self) -> None:
            length = int(self.headers.get("Content-Length") or 0)
            self.rfile.read(length)
            self._serve()

        def log_message(self, format, *args) -> None:
            pass

    return Handler


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def local_site() -> Iterator[tuple[str, LocalSite]]:
    site = LocalSite()
    server = ThreadingHTTPServer(("127.0.0.1", 0), _handler_for(site))
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}", site
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture
async def browser_page() -> AsyncGenerator:
    from playwright.async_api import Error as PlaywrightError
    from playwright.async_api import async_playwright

    async with async_playwright() as p:
        try:
            browser = await p.chromium.launch(headless=True)
        except PlaywrightError as e:
            pytest.skip(f"Chromium is not installed for Playwright: {e}")
        context = await browser.new_context()
        page = await context.new_page()
        try:
            yield page
        finally:
            await context.close()
            await browser.close()
