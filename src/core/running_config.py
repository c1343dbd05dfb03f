"""Readers for the router's running configuration text.

Only the directives the sync needs are understood: `object-group fqdn`
blocks (name + description) and `dns-proxy route object-group` lines. Each
reader is a small line scanner so the attribution rules stay easy to audit.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from core.models import DiscoveredGroup, RouteInfo

LOGGER = logging.getLogger(__name__)

RouteKey = Tuple[str, str]
RouteIndex = Dict[RouteKey, RouteInfo]

_GROUP_RE = re.compile(r"^object-group\s+fqdn\s+(\S+)", re.IGNORECASE)
_ROUTE_RE = re.compile(r"^(?:dns-proxy\s+)?route\s+object-group\s+(\S+)\s+(\S+)(.*)$", re.IGNORECASE)
_ROUTE_DISABLE_RE = re.compile(r"^(?:dns-proxy\s+)?route\s+disable\b", re.IGNORECASE)
_ROUTE_ANY_RE = re.compile(r"^(?:dns-proxy\s+)?route\b", re.IGNORECASE)
_DNS_PROXY_RE = re.compile(r"^dns-proxy$", re.IGNORECASE)

_BRACKET_SUFFIX_RE = re.compile(r"\s*\[\d+/\d+]\s*$")
_NUMBER_SUFFIX_RE = re.compile(r"\s+-?\d+$")
_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")
_NAME_CHUNK_SUFFIX_RE = re.compile(r"-\d+$")


def _lines(text: str) -> Iterator[str]:
    for raw in text.splitlines():
        yield raw.strip()


def strip_chunk_suffix(description: str) -> str:
    """Drop split markers like `[1/2]`, ` -2` or ` 2` from a description.

    A number glued to a word (`Office365`) is part of the name and is kept.
    """

    current = description.strip()
    while True:
        stripped = _BRACKET_SUFFIX_RE.sub("", current).strip()
        if stripped == current:
            break
        current = stripped
    return _NUMBER_SUFFIX_RE.sub("", current).strip()


def slugify(description: str) -> str:
    """Turn a group description into a list key (`Foo & Bar+` -> `foo-bar`)."""

    cleaned = strip_chunk_suffix(description).lower()
    return _NON_SLUG_RE.sub("-", cleaned).strip("-")


def has_chunk_suffix(name: str) -> bool:
    return bool(_NAME_CHUNK_SUFFIX_RE.search(name))


def chunk_root(name: str) -> str:
    """`list-3` -> `list`; names without a chunk suffix are returned as-is."""

    return _NAME_CHUNK_SUFFIX_RE.sub("", name)


@dataclass
class _GroupBlock:
    name: str
    description: Optional[str] = None


def _unquote(value: str) -> str:
    return value.strip().strip('"')


def discover_groups(text: str, prefix: str) -> List[DiscoveredGroup]:
    """Return the `object-group fqdn` groups whose name starts with `prefix`.

    A block runs from its `object-group fqdn` line to the next `!` or the
    next group. Groups without a usable description are skipped with a
    warning since their list key cannot be derived.
    """

    LOGGER.debug("Scanning running-config (%s chars)", len(text))

    blocks: List[_GroupBlock] = []
    current: Optional[_GroupBlock] = None
    for line in _lines(text):
        if line == "!":
            if current:
                blocks.append(current)
            current = None
            continue

        match = _GROUP_RE.match(line)
        if match:
            if current:
                blocks.append(current)
            current = _GroupBlock(name=match.group(1))
            continue

        if current and line.startswith("description"):
            description = _unquote(line[len("description"):])
            if not current.description:
                current.description = description
            elif current.description != description:
                LOGGER.warning("Multiple descriptions for %s, keeping the first one", current.name)

    if current:
        blocks.append(current)

    groups: List[DiscoveredGroup] = []
    for block in blocks:
        if not block.name.startswith(prefix):
            continue
        description = strip_chunk_suffix(block.description or "")
        slug = slugify(description)
        if not slug:
            LOGGER.warning("Skipping %s: empty or invalid description", block.name)
            continue
        groups.append(DiscoveredGroup(name=block.name, slug=slug, description=description))

    groups.sort(key=lambda group: group.name)
    LOGGER.info(
        "Matched groups: %s (prefix=%r)",
        ", ".join(group.name for group in groups) or "none",
        prefix,
    )
    return groups


def parse_routes(text: str) -> RouteIndex:
    """Index `route object-group <group> <iface> [auto] [reject] [disable]` lines.

    A bare `route disable` line marks the route defined right before it as
    disabled. Any other route line, or a `dns-proxy` section boundary, drops
    that pointer so a later `disable` cannot hit the wrong route.
    """

    routes: RouteIndex = {}
    last_key: Optional[RouteKey] = None
    in_dns_proxy = False

    for raw in _lines(text):
        line = raw.strip('"')
        if line.endswith(","):
            line = line[:-1].strip('"')

        if _DNS_PROXY_RE.match(line):
            in_dns_proxy = True
            last_key = None
            continue
        if in_dns_proxy and line == "!":
            in_dns_proxy = False
            last_key = None
            continue

        match = _ROUTE_RE.match(line)
        if match:
            group, iface, rest = match.groups()
            tokens = rest.split()
            last_key = (group, iface)
            routes[last_key] = RouteInfo(
                auto="auto" in tokens,
                reject="reject" in tokens,
                disabled="disable" in tokens or "disabled" in tokens,
            )
            continue

        if _ROUTE_DISABLE_RE.match(line) and last_key:
            previous = routes[last_key]
            routes[last_key] = RouteInfo(auto=previous.auto, reject=previous.reject, disabled=True)
            last_key = None
            continue

        if _ROUTE_ANY_RE.match(line):
            last_key = None

    return routes


def find_group_names(text: str, prefix: str) -> List[str]:
    names = set()
    for line in _lines(text):
        match = _GROUP_RE.match(line)
        if match and match.group(1).startswith(prefix):
            names.add(match.group(1))
    return sorted(names)


def collect_used_indexes(text: str, prefix: str) -> set[int]:
    """Numeric suffixes already taken by `object-group fqdn <prefix><N>` names."""

    pattern = re.compile(rf"^object-group\s+fqdn\s+{re.escape(prefix)}(\d+)", re.IGNORECASE)
    used: set[int] = set()
    for line in _lines(text):
        match = pattern.match(line)
        if match:
            used.add(int(match.group(1)))
    return used
