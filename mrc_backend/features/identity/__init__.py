"""Asset name identity parsing."""
from .parser import (
    IdentityParser,
    ParsedIdentity,
    entity_asset_name,
    fallback_key,
    parse_asset_name,
    sequence_asset_name,
)

__all__ = [
    "IdentityParser",
    "ParsedIdentity",
    "entity_asset_name",
    "fallback_key",
    "parse_asset_name",
    "sequence_asset_name",
]
