"""
Storage Provider Selector

Resolves which S3-compatible backend serves a request. Pure configuration
resolution: no network calls, no caching, evaluated per request.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from vidstream.config import Settings
from vidstream.exceptions import ConfigurationError, InvalidInputError


logger = logging.getLogger(__name__)


class ProviderId(str, Enum):
    """Supported object-storage providers"""
    R2 = "r2"
    DO = "do"


@dataclass(frozen=True)
class ProviderConfig:
    """Everything needed to talk to one bucket"""
    provider: ProviderId
    endpoint_url: str
    region: str
    bucket: str
    access_key_id: str
    secret_access_key: str


def _r2_config(settings: Settings) -> Optional[ProviderConfig]:
    if not all((
        settings.r2_account_id,
        settings.r2_access_key_id,
        settings.r2_secret_access_key,
        settings.r2_bucket_name,
    )):
        return None
    return ProviderConfig(
        provider=ProviderId.R2,
        endpoint_url=f"https://{settings.r2_account_id}.r2.cloudflarestorage.com",
        region="auto",
        bucket=settings.r2_bucket_name,
        access_key_id=settings.r2_access_key_id,
        secret_access_key=settings.r2_secret_access_key,
    )


def _do_config(settings: Settings) -> Optional[ProviderConfig]:
    if not (settings.do_spaces_access_key_id and settings.do_spaces_secret_access_key):
        return None
    region = settings.do_spaces_region or "sfo3"
    return ProviderConfig(
        provider=ProviderId.DO,
        endpoint_url=f"https://{region}.digitaloceanspaces.com",
        region=region,
        bucket=settings.do_spaces_bucket_name or "my-movies",
        access_key_id=settings.do_spaces_access_key_id,
        secret_access_key=settings.do_spaces_secret_access_key,
    )


PROVIDER_BUILDERS = {
    ProviderId.R2: _r2_config,
    ProviderId.DO: _do_config,
}

# Auto-detection order: the secondary provider (Spaces) wins when complete
AUTO_DETECT_ORDER = (ProviderId.DO, ProviderId.R2)


def parse_provider_id(value: Optional[str]) -> Optional[ProviderId]:
    """Parse an optional provider preference; blank means auto-detect."""
    if value is None or not value.strip():
        return None
    try:
        return ProviderId(value.strip().lower())
    except ValueError:
        valid = ", ".join(p.value for p in ProviderId)
        raise InvalidInputError(
            "Invalid storage provider",
            f"Unknown provider '{value}'. Valid providers: {valid}",
        )


def available_providers(settings: Settings) -> Dict[str, bool]:
    """Provider id → whether its credentials are complete"""
    return {
        provider.value: builder(settings) is not None
        for provider, builder in PROVIDER_BUILDERS.items()
    }


def resolve_provider(settings: Settings, preferred: Optional[str] = None) -> ProviderConfig:
    """
    Resolve exactly one provider configuration.

    An explicit preference is honoured only if that provider is complete;
    there is no fallback to the other one.

    Raises:
        InvalidInputError: preference is not a known provider id
        ConfigurationError: no usable provider
    """
    provider = parse_provider_id(preferred)

    if provider is not None:
        config = PROVIDER_BUILDERS[provider](settings)
    else:
        config = None
        for candidate in AUTO_DETECT_ORDER:
            config = PROVIDER_BUILDERS[candidate](settings)
            if config is not None:
                break

    if config is None:
        logger.error(f"No storage provider configured (requested: {preferred or 'auto'})")
        raise ConfigurationError("No storage provider configured")

    logger.debug(f"Resolved storage provider {config.provider.value} (bucket {config.bucket})")
    return config
