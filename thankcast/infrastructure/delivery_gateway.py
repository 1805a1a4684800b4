import logging
from abc import ABC, abstractmethod

from thankcast.config import DELIVERY_FUNCTION
from thankcast.domain.errors import DeliveryFailure
from thankcast.infrastructure.supabase_client import get_supabase

logger = logging.getLogger(__name__)


class DeliveryGateway(ABC):
    @abstractmethod
    def send(self, payload: dict) -> None:
        """Hands one email request to the sender. Raises DeliveryFailure."""


class SupabaseFunctionDeliveryGateway(DeliveryGateway):
    """Invokes the email edge function with the service-role client."""

    def __init__(self, client=None, function_name: str = DELIVERY_FUNCTION):
        self._client = client
        self.function_name = function_name

    @property
    def client(self):
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def send(self, payload: dict) -> None:
        try:
            self.client.functions.invoke(self.function_name, invoke_options={"body": payload})
        except Exception as e:
            raise DeliveryFailure(f"{self.function_name} rejected job {payload.get('jobId')}: {e}") from e


class LogOnlyDeliveryGateway(DeliveryGateway):
    """Local mode: records the request instead of sending mail."""

    def __init__(self):
        self.sent = []

    def send(self, payload: dict) -> None:
        logger.info(f"✉️ [local] Would email {payload.get('recipientEmail')} for job {payload.get('jobId')}")
        self.sent.append(payload)
