"""
Spec providers for stackdiff.

Provides the provider contract, the registry, and registration of the
built-in backends.
"""

from .base import SpecProvider, Template
from .registry import ProviderRegistry, ProviderFactory


def _aws_provider(backend, config, log):
    from .aws import AwsSpecProvider
    return AwsSpecProvider(backend, config, log)


def register_providers(registry: ProviderRegistry) -> None:
    """Register the built-in spec providers."""
    registry.register("aws", _aws_provider)


__all__ = [
    "SpecProvider",
    "Template",
    "ProviderRegistry",
    "ProviderFactory",
    "register_providers",
]
