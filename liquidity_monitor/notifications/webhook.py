"""Webhook alert delivery."""
import asyncio
import logging
import ssl

import aiohttp
import certifi

from ..config import NotificationsConfig
from ..errors import NotificationTransportError
from ..models import LiquidityAlert

logger = logging.getLogger(__name__)


class WebhookNotifier:
    """POST liquidity alerts as JSON to a configured webhook.

    Delivery is fire-and-forget: the receiver's status code is logged but
    only a network-level failure is an error.
    """

    def __init__(self, config: NotificationsConfig) -> None:
        self.webhook_url = config.webhook_url
        self.timeout = config.timeout

    async def send_alert(self, alert: LiquidityAlert) -> bool:
        """Send one alert; returns True when the receiver answered 2xx."""
        logger.info("Sending alert to webhook: %s", self.webhook_url)

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.post(
                    self.webhook_url,
                    json=alert.to_payload(),
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if 200 <= response.status < 300:
                        logger.info("Alert sent successfully")
                        return True
                    logger.warning(
                        "Alert sent but received non-success status: %s",
                        response.status,
                    )
                    return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NotificationTransportError(
                f"Failed to send webhook request: {e}"
            ) from e
