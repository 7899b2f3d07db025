"""
Provider registry.

Adapters register themselves with ``@CIProviderRegistry.register``. Callers
pick a variant by ``CIProvider`` value, by its name, or by the provider
segment of a target directory (``.../drone/<owner>/<repo>``).
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Type, Union

import httpx

from build_mirror.exceptions import InvalidTargetPath, MirrorConfigurationError

from .base import CIProviderInterface
from .models import CIProvider, ProviderConfig
from .routing import split_target_path

logger = logging.getLogger(__name__)

ProviderSelector = Union[CIProvider, str]


class CIProviderRegistry:
    """Maps each CIProvider to the adapter class that mirrors it."""

    _providers: Dict[CIProvider, Type[CIProviderInterface]] = {}

    @classmethod
    def register(cls, provider_type: CIProvider):
        """Class decorator adding an adapter under ``provider_type``."""

        def decorator(provider_class: Type[CIProviderInterface]):
            cls._providers[provider_type] = provider_class
            logger.debug(f"Registered CI provider: {provider_type.value}")
            return provider_class

        return decorator

    @classmethod
    def get_all_types(cls) -> List[CIProvider]:
        return list(cls._providers.keys())

    @classmethod
    def is_registered(cls, provider_type: CIProvider) -> bool:
        return provider_type in cls._providers

    @classmethod
    def resolve_type(cls, selector: ProviderSelector) -> CIProvider:
        """
        Turn a CIProvider or a provider name ("drone", "Bamboo") into a
        registered CIProvider.

        Raises:
            MirrorConfigurationError: If no adapter is registered under that name
        """
        if isinstance(selector, CIProvider):
            provider_type = selector
        else:
            try:
                provider_type = CIProvider(str(selector).strip().lower())
            except ValueError:
                provider_type = None

        if provider_type is None or not cls.is_registered(provider_type):
            available = sorted(p.value for p in cls.get_all_types())
            raise MirrorConfigurationError(
                f"No CI provider registered for '{selector}'. Available: {available}"
            )
        return provider_type

    @classmethod
    def type_for_target(cls, target_dir: Union[str, Path]) -> CIProvider:
        """
        Provider named by the ``<provider>`` segment of a target directory.

        Raises:
            InvalidTargetPath: If the path is too short or the segment names
                no registered provider
        """
        provider_segment = split_target_path(target_dir)[0]
        try:
            return cls.resolve_type(provider_segment)
        except MirrorConfigurationError as e:
            raise InvalidTargetPath(
                f"Cannot tell the provider of {target_dir}: {e}",
                path=target_dir,
            ) from e

    @classmethod
    def get(
        cls,
        provider_type: ProviderSelector,
        config: Optional[ProviderConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> CIProviderInterface:
        """
        Build an adapter instance.

        Args:
            provider_type: CIProvider or provider name
            config: Provider configuration; an empty one when omitted
            transport: Optional httpx transport shared by every request

        Raises:
            MirrorConfigurationError: If the provider is not registered
        """
        provider_type = cls.resolve_type(provider_type)
        if config is None:
            config = ProviderConfig(provider=provider_type)
        return cls._providers[provider_type](config, transport=transport)

    @classmethod
    def for_target(
        cls,
        target_dir: Union[str, Path],
        config: Optional[ProviderConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> CIProviderInterface:
        """Adapter for the provider a target directory belongs to."""
        return cls.get(cls.type_for_target(target_dir), config, transport=transport)


def get_ci_provider(
    provider_type: ProviderSelector,
    config: Optional[ProviderConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> CIProviderInterface:
    return CIProviderRegistry.get(provider_type, config, transport=transport)
