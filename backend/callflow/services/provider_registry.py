from typing import Dict, Mapping
import logging

import httpx

from ..config import Settings
from ..errors import ConfigurationError
from .retell_client import RetellClient
from .telephony import ProviderName, TelephonyProvider
from .vapi_client import VapiClient

logger = logging.getLogger(__name__)


def build_providers(settings: Settings, http_client: httpx.AsyncClient) -> Dict[ProviderName, TelephonyProvider]:
    logger.info(
        f"Telephony providers configured: retell_key={'set' if settings.retell_api_key else 'missing'}, "
        f"vapi_key={'set' if settings.vapi_api_key else 'missing'}, timeout={settings.provider_timeout_seconds}s"
    )
    return {
        ProviderName.RETELL: RetellClient(
            api_key=settings.retell_api_key,
            from_number=settings.retell_phone_number,
            http_client=http_client,
            timeout=settings.provider_timeout_seconds,
            read_attempts=settings.provider_read_attempts,
        ),
        ProviderName.VAPI: VapiClient(
            api_key=settings.vapi_api_key,
            http_client=http_client,
            timeout=settings.provider_timeout_seconds,
            read_attempts=settings.provider_read_attempts,
        ),
    }


def get_provider(providers: Mapping[ProviderName, TelephonyProvider], provider: str) -> TelephonyProvider:
    try:
        return providers[ProviderName(provider)]
    except (ValueError, KeyError):
        raise ConfigurationError(f"Unsupported provider: {provider}")
