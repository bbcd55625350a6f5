"""Keep-alive HTTP endpoint.

Some hosts stop idle processes unless something answers HTTP. When
enabled, a tiny aiohttp server answers every GET / with ``200 ok``.
"""

from typing import Optional

import structlog
from aiohttp import web

logger = structlog.get_logger("leaguebot.bot")


async def handle_ping(request: web.Request) -> web.Response:
    logger.debug("keepalive_ping", remote=request.remote)
    return web.Response(text="ok")


def create_app() -> web.Application:
    app = web.Application()
    app.router.add_get("/", handle_ping)
    return app


class KeepAliveServer:
    """Runs the keep-alive app on the bot's event loop."""

    def __init__(self, host: str = "0.0.0.0", port: int = 3000):
        self.host = host
        self.port = port
        self._runner: Optional[web.AppRunner] = None

    async def start(self) -> None:
        self._runner = web.AppRunner(create_app(), access_log=None)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        logger.info("keepalive_started", host=self.host, port=self.port)

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.info("keepalive_stopped")
