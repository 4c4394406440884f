"""Tiny HTTP endpoint for external uptime monitors."""

from __future__ import annotations

import logging
from typing import Optional

from aiohttp import web

logger = logging.getLogger("cratebot.keepalive")

ALIVE_TEXT = "Crates bot is alive"


async def _handle_root(_request: web.Request) -> web.Response:
    return web.Response(text=ALIVE_TEXT)


def build_app() -> web.Application:
    app = web.Application()
    app.add_routes([web.get("/", _handle_root)])
    return app


class KeepAliveServer:
    def __init__(self, *, port: int, host: str = "0.0.0.0"):
        self.host = host
        self.port = port
        self._runner: Optional[web.AppRunner] = None

    @property
    def running(self) -> bool:
        return self._runner is not None

    async def start(self) -> None:
        if self._runner is not None or self.port <= 0:
            return
        runner = web.AppRunner(build_app())
        await runner.setup()
        site = web.TCPSite(runner, self.host, self.port)
        try:
            await site.start()
        except OSError as exc:
            logger.warning("Unable to start health server on port %s: %s", self.port, exc)
            await runner.cleanup()
            return
        self._runner = runner
        logger.info("Health server listening on %s", self.port)

    async def stop(self) -> None:
        if self._runner is None:
            return
        await self._runner.cleanup()
        self._runner = None


__all__ = ["ALIVE_TEXT", "KeepAliveServer", "build_app"]
