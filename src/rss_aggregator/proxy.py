"""Same-origin proxy that relays remote feed documents."""

import contextlib
import logging
from typing import Optional
from xml.sax.saxutils import escape

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route

from .fetcher import FeedFetcher

logger = logging.getLogger(__name__)

XML_MEDIA_TYPE = "application/xml"


def _accepts_xml(request: Request) -> bool:
    accept = request.headers.get("accept", "*/*")
    return "xml" in accept or "*/*" in accept


def error_response(request: Request, message: str, status_code: int = 500) -> Response:
    """Render an error as an XML document or plain text, depending on what the client accepts."""
    if _accepts_xml(request):
        body = (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            f"<error>\n    <message>{escape(message)}</message>\n</error>\n"
        )
        return Response(body, status_code=status_code, media_type=XML_MEDIA_TYPE)
    return PlainTextResponse(message, status_code=status_code)


def create_proxy_app(fetcher: Optional[FeedFetcher] = None) -> Starlette:
    """Create the proxy application.

    Args:
        fetcher: Transport used to retrieve documents; closed on shutdown
    """
    if fetcher is None:
        from .config import config

        fetcher = FeedFetcher(config.request_timeout, config.user_agent)

    async def proxy_feed(request: Request):
        """Fetch the document named by the ``feed`` query parameter."""
        feed_url = request.query_params.get("feed")
        if not feed_url:
            return error_response(request, "Missing 'feed' query parameter", status_code=400)
        try:
            xml_text = await fetcher.fetch_document(feed_url)
        except Exception as e:
            logger.error(f"Proxy fetch failed for {feed_url}: {e}")
            return error_response(request, str(e))
        return Response(xml_text, media_type=XML_MEDIA_TYPE)

    async def health_check(request: Request):
        """Health check endpoint."""
        return JSONResponse({"status": "healthy"})

    @contextlib.asynccontextmanager
    async def lifespan(app):
        yield
        await fetcher.close()

    return Starlette(
        routes=[
            Route("/feed", proxy_feed),
            Route("/health", health_check),
        ],
        lifespan=lifespan,
    )


async def run_proxy_server(host: str = "127.0.0.1", port: int = 8080):
    """Serve the proxy application with uvicorn."""
    import uvicorn

    from .config import config

    logger.info(f"Starting feed proxy on {host}:{port}")
    logger.info(f"Feed endpoint available at http://{host}:{port}/feed?feed=<url>")

    app = create_proxy_app(FeedFetcher(config.request_timeout, config.user_agent))

    server_config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server_instance = uvicorn.Server(server_config)
    await server_instance.serve()
