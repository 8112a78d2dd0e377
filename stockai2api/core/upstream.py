"""HTTP client for the StockAI upstream."""

import asyncio
import json
import logging
import random
from typing import TYPE_CHECKING, Any, AsyncIterator, Mapping, Optional

import httpx

from .exceptions import UpstreamConnectionError, UpstreamStatusError, UpstreamTimeoutError

if TYPE_CHECKING:
    from ..config_loader import GatewayConfig

logger = logging.getLogger("stockai2api")


def generate_random_ip() -> str:
    return ".".join(str(random.randrange(255)) for _ in range(4))


def format_httpx_error(exc: Any, url: Optional[str] = None, timeout: Optional[float] = None) -> str:
    """Produce a detailed, user-facing description of an httpx error."""
    parts = [exc.__class__.__name__]
    message = str(exc).strip()
    if message:
        parts.append(message)

    try:
        request = exc.request
    except (AttributeError, RuntimeError):
        request = None
    if request is not None:
        parts.append(f"request={request.method} {request.url}")
    elif url:
        parts.append(f"url={url}")

    if isinstance(exc, httpx.TimeoutException) and timeout:
        parts.append(f"timeout={timeout}s")

    return "; ".join(parts)


class UpstreamSession:
    """One open streaming response from the upstream.

    All reads share a single deadline fixed when the request was sent, so
    the timeout bounds the whole transfer rather than each chunk.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        response: httpx.Response,
        deadline: float,
        timeout: float,
    ) -> None:
        self.client = client
        self.response = response
        self.timeout = timeout
        self._deadline = deadline
        self._closed = False

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def closed(self) -> bool:
        return self._closed

    def remaining(self) -> float:
        return max(0.0, self._deadline - asyncio.get_running_loop().time())

    def _timeout_error(self) -> UpstreamTimeoutError:
        return UpstreamTimeoutError(
            f"Upstream request timed out after {self.timeout:g}s", timeout=self.timeout
        )

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        """Yield raw body chunks in arrival order, closing the session when done."""
        stream = self.response.aiter_bytes()
        try:
            while True:
                try:
                    chunk = await asyncio.wait_for(stream.__anext__(), self.remaining())
                except StopAsyncIteration:
                    break
                except asyncio.TimeoutError as exc:
                    logger.error("Upstream stream exceeded %ss deadline", self.timeout)
                    raise self._timeout_error() from exc
                except httpx.TimeoutException as exc:
                    raise self._timeout_error() from exc
                except httpx.HTTPError as exc:
                    detail = format_httpx_error(exc, timeout=self.timeout)
                    logger.error(f"Upstream stream failed: {detail}")
                    raise UpstreamConnectionError(f"Upstream stream error: {detail}") from exc
                if chunk:
                    yield chunk
        finally:
            await self.aclose()

    async def read_text(self) -> str:
        """Read the rest of the body as text (used for error responses)."""
        try:
            await asyncio.wait_for(self.response.aread(), self.remaining())
        except (asyncio.TimeoutError, httpx.HTTPError) as exc:
            logger.warning("Could not read upstream error body: %s", exc.__class__.__name__)
            return ""
        return self.response.text

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self.response.aclose()
        finally:
            await self.client.aclose()


class UpstreamClient:
    """Opens streaming chat requests against the configured StockAI endpoint."""

    def __init__(
        self,
        config: "GatewayConfig",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the upstream client.

        Args:
            config: Gateway configuration.
            transport: Optional httpx transport used instead of the network,
                e.g. an in-process fake of the upstream.
        """
        self.config = config
        self.transport = transport

    def build_headers(self, fake_ip: Optional[str] = None) -> dict[str, str]:
        """Base browser headers plus a random client IP on the spoofing headers."""
        ip = fake_ip or generate_random_ip()
        headers = dict(self.config.upstream_headers)
        for name in self.config.fake_ip_headers:
            headers[name] = ip
        return headers

    async def open(self, payload: Mapping[str, Any]) -> UpstreamSession:
        """Send ``payload`` and return the session once a 2xx status arrived.

        Raises:
            UpstreamStatusError: The upstream answered with a non-2xx status.
            UpstreamTimeoutError: The deadline expired before headers arrived.
            UpstreamConnectionError: The request could not be sent.
        """
        url = self.config.upstream_url
        timeout = self.config.upstream_timeout
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        headers = self.build_headers()
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Outbound headers: %s", headers)
        logger.debug(f"Body size for upstream: {len(body)} bytes")

        stream_timeout = httpx.Timeout(connect=timeout, read=None, write=timeout, pool=timeout)
        try:
            request = httpx.Request(
                "POST",
                url,
                headers=headers,
                content=body,
                extensions={"timeout": stream_timeout.as_dict()},
            )
        except httpx.InvalidURL as exc:
            logger.error(f"Invalid upstream URL {url!r}: {exc}")
            raise UpstreamConnectionError(f"Invalid upstream URL {url!r}: {exc}") from exc

        client = httpx.AsyncClient(
            timeout=stream_timeout, transport=self.transport, follow_redirects=True
        )
        try:
            response = await asyncio.wait_for(client.send(request, stream=True), timeout)
        except asyncio.TimeoutError as exc:
            await client.aclose()
            logger.error(f"Upstream request to {url} timed out after {timeout}s")
            raise UpstreamTimeoutError(
                f"Upstream request timed out after {timeout:g}s", timeout=timeout
            ) from exc
        except httpx.TimeoutException as exc:
            await client.aclose()
            detail = format_httpx_error(exc, url=url, timeout=timeout)
            logger.error(f"Upstream request timed out: {detail}")
            raise UpstreamTimeoutError(f"Upstream request timed out: {detail}", timeout=timeout) from exc
        except httpx.HTTPError as exc:
            await client.aclose()
            detail = format_httpx_error(exc, url=url, timeout=timeout)
            logger.error(f"Failed to send upstream request: {detail}")
            raise UpstreamConnectionError(f"Upstream request failed: {detail}") from exc
        except BaseException:
            await client.aclose()
            raise

        session = UpstreamSession(client, response, deadline, timeout)
        logger.info(f"Upstream responded with status {response.status_code}")

        if not response.is_success:
            text = await session.read_text()
            await session.aclose()
            logger.warning(f"Upstream returned error status {response.status_code}")
            raise UpstreamStatusError(
                response.status_code, text, limit=self.config.error_body_limit
            )
        return session
