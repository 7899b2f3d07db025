from typing import Optional, Union

import httpx

from build_mirror.config import settings

from .models import CIProvider, ProviderConfig


def get_provider_config(provider_type: CIProvider) -> ProviderConfig:
    """
    Get ProviderConfig for a CI provider using app settings.

    Args:
        provider_type: The CI provider type

    Returns:
        ProviderConfig populated with settings
    """
    if provider_type == CIProvider.BAMBOO:
        return ProviderConfig(
            provider=provider_type,
            base_url=settings.BAMBOO_BASE_URL,
            username=settings.BAMBOO_USERNAME,
            password=settings.BAMBOO_PASSWORD,
            timeout_seconds=settings.HTTP_TIMEOUT_SECONDS,
            extra={"default_ref_name": settings.BAMBOO_DEFAULT_REF_NAME},
        )

    elif provider_type == CIProvider.DRONE:
        return ProviderConfig(
            provider=provider_type,
            base_url=settings.DRONE_BASE_URL,
            token=settings.DRONE_TOKEN,
            timeout_seconds=settings.HTTP_TIMEOUT_SECONDS,
        )

    return ProviderConfig(provider=provider_type, timeout_seconds=settings.HTTP_TIMEOUT_SECONDS)


def get_configured_provider(
    provider_type: Union[CIProvider, str],
    transport: Optional[httpx.AsyncBaseTransport] = None,
):
    """
    Get a fully configured CI provider instance.

    Args:
        provider_type: The CI provider type or its name
        transport: Optional httpx transport

    Returns:
        CIProviderInterface instance ready to use
    """
    from .factory import CIProviderRegistry

    provider_type = CIProviderRegistry.resolve_type(provider_type)
    config = get_provider_config(provider_type)
    return CIProviderRegistry.get(provider_type, config, transport=transport)
