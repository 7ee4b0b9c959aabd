"""
Remote resource clients and stores.
"""

from .envelope import (
    ResourceEnvelope,
    normalize_list,
    normalize_item,
    unwrap_item,
    extract_meta,
)

from .client import (
    ResourceClient,
    require_identity,
    split_identity,
)

from .store import (
    ResourceState,
    BaseStore,
    ResourceStore,
)

from .singleton import SingletonResourceStore

__all__ = [
    "ResourceEnvelope",
    "normalize_list",
    "normalize_item",
    "unwrap_item",
    "extract_meta",
    "ResourceClient",
    "require_identity",
    "split_identity",
    "ResourceState",
    "BaseStore",
    "ResourceStore",
    "SingletonResourceStore",
]
