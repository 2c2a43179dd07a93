"""
Feature flags: named booleans derived from a principal's rights.

The flag table is data (``config/feature_flags.yaml``), loaded once and
validated:
- every capability must parse,
- referenced flags must exist and must not form a cycle,
- user types must be known.

At runtime ``FeatureFlagDeriver.derive(principal, department_id)`` evaluates
every flag as an OR over its clauses and returns an immutable snapshot.
Snapshots are memoised on the exact inputs flags depend on (see
``Principal.flag_cache_key``), so a department switch or a rights change
always yields a freshly computed snapshot.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
import functools
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from . import resolver
from .capability import is_valid_capability
from .principal import Principal, UserType, normalize_department_id

logger = logging.getLogger(__name__)

DEFAULT_FLAGS_PATH = Path(__file__).resolve().parents[1] / "config" / "feature_flags.yaml"


# ---- YAML shape --------------------------------------------------------------------------


class FlagDefinitionModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    group: str
    description: str = ""
    permissions: list[str] = Field(default_factory=list)
    flags: list[str] = Field(default_factory=list)
    user_types: list[str] = Field(default_factory=list)
    admin_session: bool = False
    department_selected: bool = False


class FlagTableModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    feature_flags: dict[str, FlagDefinitionModel]


# ---- Data structures ---------------------------------------------------------------------


@dataclass(frozen=True)
class FlagDefinition:
    """One flag: true when any clause holds."""

    name: str
    group: str
    description: str
    permissions: tuple[str, ...] = ()
    flags: tuple[str, ...] = ()
    user_types: frozenset[UserType] = frozenset()
    admin_session: bool = False
    department_selected: bool = False


@dataclass(frozen=True)
class FlagConfig:
    """Validated flag table."""

    definitions: Mapping[str, FlagDefinition]
    names: tuple[str, ...]
    """Flag names in declaration order."""

    evaluation_order: tuple[str, ...]
    """Flag names ordered so referenced flags come before the flags using them."""

    def groups(self) -> dict[str, list[str]]:
        result: dict[str, list[str]] = {}
        for name in self.names:
            result.setdefault(self.definitions[name].group, []).append(name)
        return result


class FlagConfigError(ValueError):
    """Raised when the feature flag table is invalid."""


# ---- Loader ------------------------------------------------------------------------------


def load_flag_definitions(path: Path) -> FlagConfig:
    raw_text = path.read_text(encoding="utf-8")
    raw: dict[str, Any] = yaml.safe_load(raw_text) or {}
    return parse_flag_definitions(raw, source=str(path))


def parse_flag_definitions(raw: Mapping[str, Any], source: str = "<memory>") -> FlagConfig:
    if "feature_flags" not in raw:
        raise FlagConfigError(f"Missing top-level 'feature_flags' key in {source}")

    try:
        model = FlagTableModel.model_validate(raw)
    except ValidationError as exc:
        raise FlagConfigError(f"Invalid feature flag table in {source}: {exc}") from exc

    definitions: dict[str, FlagDefinition] = {}
    for name, entry in model.feature_flags.items():
        bad = [p for p in entry.permissions if not is_valid_capability(p)]
        if bad:
            raise FlagConfigError(f"flag {name!r} has malformed permissions: {bad}")

        user_types: set[UserType] = set()
        for value in entry.user_types:
            try:
                user_types.add(UserType(value))
            except ValueError:
                raise FlagConfigError(f"flag {name!r} references unknown user type {value!r}") from None

        if not (entry.permissions or entry.flags or user_types or entry.admin_session or entry.department_selected):
            raise FlagConfigError(f"flag {name!r} has no conditions")

        definitions[name] = FlagDefinition(
            name=name,
            group=entry.group,
            description=entry.description,
            permissions=tuple(entry.permissions),
            flags=tuple(entry.flags),
            user_types=frozenset(user_types),
            admin_session=entry.admin_session,
            department_selected=entry.department_selected,
        )

    for definition in definitions.values():
        unknown = [f for f in definition.flags if f not in definitions]
        if unknown:
            raise FlagConfigError(f"flag {definition.name!r} references unknown flags: {unknown}")

    return FlagConfig(
        definitions=MappingProxyType(definitions),
        names=tuple(definitions),
        evaluation_order=_evaluation_order(definitions),
    )


def _evaluation_order(definitions: Mapping[str, FlagDefinition]) -> tuple[str, ...]:
    """Order flags so dependencies are evaluated first; raise on cycles."""

    order: list[str] = []
    done: set[str] = set()
    visiting: set[str] = set()

    def dfs(name: str) -> None:
        if name in done:
            return
        if name in visiting:
            raise FlagConfigError(f"cycle detected in flag references at {name!r}")
        visiting.add(name)
        for dependency in definitions[name].flags:
            dfs(dependency)
        visiting.remove(name)
        done.add(name)
        order.append(name)

    for name in definitions:
        dfs(name)

    return tuple(order)


# ---- Snapshot ----------------------------------------------------------------------------


class FeatureFlags(Mapping[str, bool]):
    """
    Read-only snapshot of flag values.

    Supports ``flags.can_manage_courses`` and ``flags["can_manage_courses"]``.
    Equal by value; hashable.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, bool] | Iterable[tuple[str, bool]]) -> None:
        object.__setattr__(self, "_values", MappingProxyType({k: bool(v) for k, v in dict(values).items()}))

    @classmethod
    def empty(cls, names: Iterable[str]) -> FeatureFlags:
        return cls({name: False for name in names})

    def __getitem__(self, name: str) -> bool:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __getattr__(self, name: str) -> bool:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._values[name]
        except KeyError:
            raise AttributeError(f"unknown feature flag {name!r}") from None

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("FeatureFlags is immutable")

    def __hash__(self) -> int:
        return hash(frozenset(self._values.items()))

    def __repr__(self) -> str:
        return f"FeatureFlags(granted={self.granted()!r})"

    def granted(self) -> list[str]:
        return sorted(name for name, value in self._values.items() if value)

    def to_dict(self) -> dict[str, bool]:
        return dict(self._values)


# ---- Deriver -----------------------------------------------------------------------------


class _FlagInputs:
    """Cache key wrapper: hashes and compares on the flag inputs only."""

    __slots__ = ("principal", "department_id", "key")

    def __init__(self, principal: Principal, department_id: str | None) -> None:
        self.principal = principal
        self.department_id = department_id
        self.key = principal.flag_cache_key(department_id)

    def __hash__(self) -> int:
        return hash(self.key)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _FlagInputs) and self.key == other.key


class FeatureFlagDeriver:
    """
    Evaluates a FlagConfig against principals.

    Usage:
        deriver = FeatureFlagDeriver.from_yaml(Path("feature_flags.yaml"))
        flags = deriver.derive(principal)
        if flags.can_manage_courses: ...
    """

    def __init__(self, config: FlagConfig, cache_size: int = 256) -> None:
        self._config = config
        self._empty = FeatureFlags.empty(config.names)
        self._cached_evaluate = functools.lru_cache(maxsize=cache_size)(self._evaluate)

    @classmethod
    def from_yaml(cls, path: Path, cache_size: int = 256) -> FeatureFlagDeriver:
        return cls(load_flag_definitions(path), cache_size=cache_size)

    @property
    def config(self) -> FlagConfig:
        return self._config

    @property
    def empty(self) -> FeatureFlags:
        """The all-false snapshot for absent or unauthenticated principals."""
        return self._empty

    def derive(self, principal: Principal | None, active_department_id: str | None = None) -> FeatureFlags:
        """
        Compute flags for ``principal``.

        ``active_department_id`` overrides the principal's own active
        department; when neither is set only global rights count.
        """

        if principal is None or not principal.authenticated:
            return self._empty
        department_id = normalize_department_id(active_department_id) or principal.active_department_id
        return self._cached_evaluate(_FlagInputs(principal, department_id))

    def cache_info(self) -> functools._CacheInfo:
        return self._cached_evaluate.cache_info()

    def cache_clear(self) -> None:
        self._cached_evaluate.cache_clear()

    def _evaluate(self, inputs: _FlagInputs) -> FeatureFlags:
        principal = inputs.principal
        department_id = inputs.department_id
        values: dict[str, bool] = {}

        for name in self._config.evaluation_order:
            definition = self._config.definitions[name]
            values[name] = (
                (definition.admin_session and principal.is_admin_session_active)
                or (definition.department_selected and department_id is not None)
                or bool(definition.user_types & principal.user_types)
                or any(values[f] for f in definition.flags)
                or resolver.has_any_permission(principal, definition.permissions, department_id)
            )

        logger.debug(
            "Derived feature flags user=%s department=%s granted=%d/%d",
            principal.user_id,
            department_id,
            sum(values.values()),
            len(values),
        )
        return FeatureFlags({name: values[name] for name in self._config.names})


@functools.lru_cache(maxsize=1)
def default_deriver() -> FeatureFlagDeriver:
    """Deriver over the bundled flag table."""
    return FeatureFlagDeriver.from_yaml(DEFAULT_FLAGS_PATH)


def derive_feature_flags(principal: Principal | None, active_department_id: str | None = None) -> FeatureFlags:
    return default_deriver().derive(principal, active_department_id)
