"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to the router CLI or to any particular list transport.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

RuleKind = Literal["include", "domain", "full", "keyword", "regexp"]

# Kinds that carry a concrete match value (everything except include).
VALUE_KINDS: frozenset[str] = frozenset({"domain", "full", "keyword", "regexp"})


@dataclass(frozen=True)
class Attribute:
    """A `@tag` or `@tag=N` marker attached to a list rule."""

    key: str
    value: Union[bool, int] = True


@dataclass(frozen=True)
class Rule:
    """One parsed entry of a domain-list document."""

    kind: RuleKind
    value: str
    attrs: tuple[Attribute, ...] = ()


@dataclass
class ResolvedListResult:
    """Aggregated output of a single top-level list resolution."""

    domains: set[str] = field(default_factory=set)
    skipped_keyword: int = 0
    skipped_regexp: int = 0
    include_count: int = 0
    total_rule_count: int = 0


@dataclass(frozen=True)
class DiscoveredGroup:
    """An `object-group fqdn` found in the running configuration.

    `slug` is the list key derived from the description and is never empty.
    """

    name: str
    slug: str
    description: str


@dataclass(frozen=True)
class RouteInfo:
    """Flags of a `dns-proxy route object-group` directive."""

    auto: bool = True
    reject: bool = False
    disabled: bool = False


@dataclass
class SyncOutcome:
    """Counters reported at the end of a reconciliation run."""

    applied: int = 0
    failed: int = 0
    routes_created: int = 0
    groups: list[str] = field(default_factory=list)


@dataclass
class DropOutcome:
    """Names of the groups removed by a clean-up run."""

    groups: list[str] = field(default_factory=list)
