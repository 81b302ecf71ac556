"""
Customer SMS notifications for order status changes.
Sends through the Twilio REST API; scheduled as background tasks so a slow
or failing provider never delays or fails the status update.
"""

from typing import Optional

import httpx

from shared.config.logging import mask_phone, notification_logger as logger
from shared.config.settings import settings
from shared.config.constants import OrderStatus


STATUS_MESSAGES = {
    OrderStatus.ACCEPTED: "Your order at {restaurant} has been accepted!",
    OrderStatus.PREPARING: "Your order at {restaurant} is being prepared.",
    OrderStatus.READY: "Your order at {restaurant} is ready!",
    OrderStatus.DELIVERED: "Your order at {restaurant} has been delivered. Enjoy your meal!",
}


def status_message(status: str, restaurant_name: str) -> Optional[str]:
    """Customer-facing text for a status, or None if the status is not announced."""
    template = STATUS_MESSAGES.get(status)
    return template.format(restaurant=restaurant_name) if template else None


class SmsNotifier:
    """HTTP client for the Twilio Messages API."""

    def __init__(
        self,
        account_sid: str = settings.twilio_account_sid,
        auth_token: str = settings.twilio_auth_token,
        from_number: str = settings.twilio_from_number,
        enabled: bool = settings.notifications_enabled,
        api_base: str = settings.twilio_api_base,
        timeout: float = settings.notification_timeout_seconds,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.enabled = enabled
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    async def send_sms(self, to: str, body: str) -> bool:
        """
        Send one message. Returns True on success.
        Never raises: provider errors are logged and reported as False.
        """
        if not self.enabled:
            logger.debug("SMS disabled, not sent", to=mask_phone(to))
            return False
        if not self.configured:
            logger.warning("Twilio not configured, SMS not sent", to=mask_phone(to))
            return False

        url = f"{self.api_base}/Accounts/{self.account_sid}/Messages.json"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                auth=(self.account_sid, self.auth_token),
                transport=self._transport,
            ) as client:
                response = await client.post(
                    url,
                    data={"To": to, "From": self.from_number, "Body": body},
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "SMS rejected by provider",
                to=mask_phone(to),
                status_code=e.response.status_code,
            )
            return False
        except httpx.HTTPError as e:
            logger.error("SMS send failed", to=mask_phone(to), error=str(e))
            return False
        except Exception as e:
            logger.error("SMS send crashed", to=mask_phone(to), error=str(e), exc_info=True)
            return False

        logger.info("SMS sent", to=mask_phone(to))
        return True

    async def send_order_notification(
        self,
        customer_phone: Optional[str],
        status: str,
        restaurant_name: str,
    ) -> bool:
        """Announce a status change to the customer, if the status is announced."""
        message = status_message(status, restaurant_name)
        if not message or not customer_phone:
            return False
        return await self.send_sms(customer_phone, message)


def get_notifier() -> SmsNotifier:
    """FastAPI dependency. Overridden in tests."""
    return SmsNotifier()
