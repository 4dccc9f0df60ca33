"""
Remote Notifier

Relays arm/disarm/stop commands to the remote device controller.

Each command is a single GET to {base}/api/<command> with a bounded
timeout and no retry. Any transport error, timeout or non-2xx response is
raised as RemoteNotifyError; the caller decides whether it matters.
"""

import httpx

from ..common.exceptions import RemoteNotifyError
from ..common.logging_setup import get_service_logger

logger = get_service_logger("notifier")


class RemoteNotifier:
    """httpx client for the remote device controller"""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client"""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def notify_arm(self) -> None:
        await self._send("arm")

    async def notify_disarm(self) -> None:
        await self._send("disarm")

    async def notify_stop(self) -> None:
        await self._send("stop")

    async def _send(self, command: str) -> None:
        url = f"{self.base_url}/api/{command}"
        client = await self._get_client()

        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise RemoteNotifyError(
                command, f"timed out after {self.timeout_seconds}s", url=url
            ) from e
        except httpx.HTTPStatusError as e:
            raise RemoteNotifyError(
                command,
                f"HTTP {e.response.status_code}",
                url=url,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise RemoteNotifyError(command, str(e) or type(e).__name__, url=url) from e

        logger.debug(
            f"Remote {command} confirmed",
            extra={"command": command, "url": url, "status_code": response.status_code},
        )
