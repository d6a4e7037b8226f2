"""Expiry resolution for tracked names.

Public API:
- ExpiryResolver: Protocol the command layer consumes
- RpcExpiryResolver: Reads the registrar contract over JSON-RPC
- StaticExpiryResolver: Fixed mapping for development and tests
- normalize_name / is_valid_name: Name handling
"""

from lapse.resolver.base import ExpiryResolver
from lapse.resolver.names import NAME_PATTERN, is_valid_name, normalize_name
from lapse.resolver.rpc import (
    DEFAULT_REGISTRAR_ADDRESS,
    RpcExpiryResolver,
    encode_name_expires,
    label_hash,
)
from lapse.resolver.static import StaticExpiryResolver

__all__ = [
    "DEFAULT_REGISTRAR_ADDRESS",
    "NAME_PATTERN",
    "ExpiryResolver",
    "RpcExpiryResolver",
    "StaticExpiryResolver",
    "encode_name_expires",
    "is_valid_name",
    "label_hash",
    "normalize_name",
]
