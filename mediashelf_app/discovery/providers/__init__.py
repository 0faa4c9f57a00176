"""Discovery providers, keyed by the id prefix they emit."""

from typing import Dict

from .base import BaseDiscoveryProvider, PAGE_SIZE
from .jikan import JikanProvider
from .google_books import GoogleBooksProvider

ProviderTable = Dict[str, BaseDiscoveryProvider]


def build_provider_table(*providers: BaseDiscoveryProvider) -> ProviderTable:
    """Index providers by namespace prefix; prefixes must be unique."""
    table: ProviderTable = {}
    for provider in providers:
        if provider.id in table:
            raise ValueError(f"Duplicate provider prefix '{provider.id}'")
        table[provider.id] = provider
    return table


__all__ = [
    'BaseDiscoveryProvider',
    'GoogleBooksProvider',
    'JikanProvider',
    'PAGE_SIZE',
    'ProviderTable',
    'build_provider_table',
]
