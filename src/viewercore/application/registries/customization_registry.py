"""
Layered customization resolver.

Every identifier owns an ordered chain of layers. Chain order is fixed by
source (extension defaults, then mode overrides, then runtime overrides) and
by insertion order within a source. Resolution walks the chain, skips empty
(`None`) layers and folds each remaining layer into the accumulated value
using that layer's merge policy:

- REPLACE: the layer value replaces whatever came before (shallow).
- MERGE:   mappings are merged recursively; lists and scalars are replaced.
- APPEND:  like MERGE, but lists are concatenated.

When no layer carries a value, the extension default is returned as-is,
including `None`.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from viewercore.core.errors import CustomizationNotFound

logger = logging.getLogger(__name__)

_MISSING = object()


class CustomizationSource(int, Enum):
    EXTENSION_DEFAULT = 0
    MODE_OVERRIDE = 1
    RUNTIME_OVERRIDE = 2


class MergePolicy(str, Enum):
    REPLACE = "replace"
    MERGE = "merge"
    APPEND = "append"


class CustomizationScope(str, Enum):
    MODE = "mode"
    SESSION = "session"


@dataclass
class CustomizationOverride:
    """Wraps an override value with an explicit merge policy."""

    value: Any
    merge: MergePolicy = MergePolicy.REPLACE


@dataclass
class CustomizationLayer:
    source: CustomizationSource
    value: Any
    owner: Optional[str] = None
    merge: MergePolicy = MergePolicy.REPLACE
    scope: CustomizationScope = CustomizationScope.SESSION
    seq: int = 0


@dataclass
class CustomizationEntry:
    id: str
    layers: List[CustomizationLayer] = field(default_factory=list)

    def chain(self) -> List[CustomizationLayer]:
        return sorted(self.layers, key=lambda layer: (layer.source, layer.seq))

    @property
    def has_default(self) -> bool:
        return any(layer.source is CustomizationSource.EXTENSION_DEFAULT for layer in self.layers)


def merge_values(base: Any, override: Any, policy: MergePolicy) -> Any:
    if policy is MergePolicy.REPLACE:
        return override
    if isinstance(base, Mapping) and isinstance(override, Mapping):
        merged = dict(base)
        for key, value in override.items():
            if key in merged:
                merged[key] = merge_values(merged[key], value, policy)
            else:
                merged[key] = copy.deepcopy(value)
        return merged
    if policy is MergePolicy.APPEND and isinstance(base, list) and isinstance(override, list):
        return list(base) + list(override)
    return override


def resolve_chain(layers: Iterable[CustomizationLayer]) -> Any:
    chain = list(layers)
    acc: Any = _MISSING
    for layer in chain:
        if layer.value is None:
            continue
        if acc is _MISSING:
            acc = layer.value
        else:
            acc = merge_values(acc, layer.value, layer.merge)
    if acc is _MISSING:
        defaults = [layer for layer in chain if layer.source is CustomizationSource.EXTENSION_DEFAULT]
        return defaults[-1].value if defaults else None
    return acc


class CustomizationResolver:
    """
    Resolves customization ids through the layered override chain.

    Resolved values are cached lazily and dropped when the active mode changes
    (`on_mode_changed`) or when a layer for that id is added or removed.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, CustomizationEntry] = {}
        self._cache: Dict[str, Any] = {}
        self._seq = 0
        self.active_mode: Optional[str] = None

    # ------------------ queries ------------------
    def has_customization(self, customization_id: str) -> bool:
        entry = self._entries.get(customization_id)
        return entry is not None and bool(entry.layers)

    def customization_ids(self) -> List[str]:
        return sorted(cid for cid, entry in self._entries.items() if entry.layers)

    def get_customization(self, customization_id: str, default: Any = _MISSING) -> Any:
        if customization_id in self._cache:
            return copy.deepcopy(self._cache[customization_id])

        entry = self._entries.get(customization_id)
        if entry is None or not entry.layers:
            if default is not _MISSING:
                return default
            raise CustomizationNotFound(customization_id)

        value = resolve_chain(entry.chain())
        self._cache[customization_id] = value
        # Callers get their own copy; layers and the cache stay untouched.
        return copy.deepcopy(value)

    def layers(self, customization_id: str) -> List[CustomizationLayer]:
        entry = self._entries.get(customization_id)
        return entry.chain() if entry else []

    # ------------------ contribution path ------------------
    def add_default(self, customization_id: str, value: Any, *, owner: Optional[str] = None) -> None:
        self._push(customization_id, CustomizationLayer(
            source=CustomizationSource.EXTENSION_DEFAULT,
            value=value,
            owner=owner,
            scope=CustomizationScope.SESSION,
        ))

    def add_defaults(self, values: Mapping[str, Any], *, owner: Optional[str] = None) -> None:
        for customization_id, value in values.items():
            self.add_default(customization_id, value, owner=owner)

    def add_mode_overrides(self, values: Mapping[str, Any], *, mode_id: str) -> None:
        for customization_id, value in values.items():
            value, merge = _unwrap(value)
            self._push(customization_id, CustomizationLayer(
                source=CustomizationSource.MODE_OVERRIDE,
                value=value,
                owner=mode_id,
                merge=merge,
                scope=CustomizationScope.MODE,
            ))

    def set_customization(
        self,
        customization_id: str,
        value: Any,
        *,
        scope: CustomizationScope | str = CustomizationScope.MODE,
        merge: MergePolicy | str = MergePolicy.REPLACE,
    ) -> None:
        """
        Push a runtime override.

        Mode-scoped overrides are dropped when the active mode deactivates;
        with no active mode they behave as session-scoped.
        """
        if not isinstance(customization_id, str) or not customization_id:
            raise ValueError("customization id must be a non-empty string")
        scope = CustomizationScope(scope)
        merge = MergePolicy(merge)
        owner = None
        if scope is CustomizationScope.MODE:
            if self.active_mode is None:
                scope = CustomizationScope.SESSION
            else:
                owner = self.active_mode
        self._push(customization_id, CustomizationLayer(
            source=CustomizationSource.RUNTIME_OVERRIDE,
            value=value,
            owner=owner,
            merge=merge,
            scope=scope,
        ))

    def remove_owner(self, owner: str) -> int:
        """Drop every layer contributed by `owner` (an extension or mode id)."""
        removed = 0
        for customization_id, entry in self._entries.items():
            before = len(entry.layers)
            entry.layers = [layer for layer in entry.layers if layer.owner != owner]
            if len(entry.layers) != before:
                removed += before - len(entry.layers)
                self._cache.pop(customization_id, None)
        return removed

    def clear_runtime_overrides(self, customization_id: Optional[str] = None) -> None:
        ids = [customization_id] if customization_id else list(self._entries)
        for cid in ids:
            entry = self._entries.get(cid)
            if entry is None:
                continue
            entry.layers = [l for l in entry.layers if l.source is not CustomizationSource.RUNTIME_OVERRIDE]
            self._cache.pop(cid, None)

    def on_mode_changed(self, mode_id: Optional[str]) -> None:
        self.active_mode = mode_id
        self._cache.clear()

    def _push(self, customization_id: str, layer: CustomizationLayer) -> None:
        self._seq += 1
        layer.seq = self._seq
        layer.value = copy.deepcopy(layer.value)
        entry = self._entries.setdefault(customization_id, CustomizationEntry(id=customization_id))
        entry.layers.append(layer)
        self._cache.pop(customization_id, None)
        logger.debug(
            f"Customization {customization_id}: +{layer.source.name.lower()} layer (owner={layer.owner})"
        )


def _unwrap(value: Any) -> tuple[Any, MergePolicy]:
    if isinstance(value, CustomizationOverride):
        return value.value, MergePolicy(value.merge)
    return value, MergePolicy.REPLACE
