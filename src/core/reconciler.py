"""Core reconciliation pipeline.

This module is integration-agnostic. It reads the running configuration,
resolves the desired domain set of every managed group and re-creates the
groups and their DNS-proxy routes through the ports only.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional, Sequence

from core.config import SyncConfig
from core.device import DeviceCommands
from core.errors import CommandError, SyncError
from core.models import DiscoveredGroup, DropOutcome, RouteInfo, SyncOutcome
from core.ports import CommandPort, ListSourcePort, RunningConfigPort
from core.resolver import ListResolver
from core.routes import RouteState
from core.running_config import (
    collect_used_indexes,
    discover_groups,
    find_group_names,
    has_chunk_suffix,
    slugify,
    strip_chunk_suffix,
)

LOGGER = logging.getLogger(__name__)


def chunk(items: Sequence[str], size: int) -> List[List[str]]:
    """Split `items` into consecutive slices of at most `size` entries.

    An empty input still yields one empty chunk so the base group is kept.
    """

    if size <= 0:
        raise ValueError("chunk size must be positive")
    if not items:
        return [[]]
    return [list(items[start:start + size]) for start in range(0, len(items), size)]


def chunk_group_names(base_name: str, count: int) -> List[str]:
    """`base`, `base-2`, `base-3`, ... for `count` chunks."""

    return [base_name if index == 0 else f"{base_name}-{index + 1}" for index in range(count)]


def next_available_name(prefix: str, used: set[int]) -> str:
    index = 0
    while index in used:
        index += 1
    used.add(index)
    return f"{prefix}{index}"


def provision_initial_groups(
    existing: List[DiscoveredGroup],
    seeds: Iterable[str],
    prefix: str,
    running_config: str,
) -> List[DiscoveredGroup]:
    """Create group entries for the seed descriptions when none exist yet."""

    seeds = list(seeds)
    if not seeds or existing:
        return existing

    used = collect_used_indexes(running_config, prefix)
    by_slug = {group.slug: group for group in existing}
    created: List[DiscoveredGroup] = []

    for raw in seeds:
        description = str(raw or "").strip()
        slug = slugify(description)
        if not description or not slug:
            continue
        if slug in by_slug:
            continue
        group = DiscoveredGroup(
            name=next_available_name(prefix, used),
            slug=slug,
            description=description,
        )
        created.append(group)
        by_slug[slug] = group
        LOGGER.info("Provisioned %s (%s -> %s)", group.name, description, slug)

    return [*existing, *created]


def dedupe_groups(groups: Iterable[DiscoveredGroup]) -> List[DiscoveredGroup]:
    """Keep one group per slug, preferring the unsplit base name."""

    by_slug: dict[str, DiscoveredGroup] = {}
    for group in groups:
        kept = by_slug.get(group.slug)
        if kept is None:
            by_slug[group.slug] = group
            continue
        if not has_chunk_suffix(group.name) and has_chunk_suffix(kept.name):
            by_slug[group.slug] = group
    return sorted(by_slug.values(), key=lambda group: group.name)


class Reconciler:
    """Orchestrates discovery, list resolution, chunking and routes."""

    def __init__(
        self,
        config: SyncConfig,
        source: ListSourcePort,
        commands: CommandPort,
        running_config: Optional[RunningConfigPort] = None,
    ) -> None:
        self._config = config
        self._resolver = ListResolver(config.fetch_context(), source)
        self._device = DeviceCommands(commands, config.dry_run)
        self._running_config = running_config

    def _read_running_config(self, override: Optional[str]) -> str:
        if override is not None:
            return override
        if self._running_config is None:
            LOGGER.warning("No running-config source configured, assuming an empty configuration")
            return ""
        try:
            return self._running_config.read_running_config()
        except CommandError as exc:
            LOGGER.warning("Failed to read running-config (%s)", exc.details())
            return ""

    def _delay_seconds(self) -> float:
        if self._config.dry_run:
            return 0.0
        return self._config.delay_between_lists_ms / 1000

    async def run(self, running_config_text: Optional[str] = None) -> SyncOutcome:
        """Run one reconciliation pass and return its counters."""

        cfg = self._config
        running_config = self._read_running_config(running_config_text)
        discovered = discover_groups(running_config, cfg.prefix)
        groups = dedupe_groups(
            provision_initial_groups(discovered, cfg.initial_domains, cfg.prefix, running_config)
        )
        routes = RouteState(running_config, self._device)

        LOGGER.info(
            "Sync settings: base_url=%s, prefix=%s, timeout_ms=%s, dry_run=%s, "
            "max_entries_per_group=%s, retries=%s, route_interface=%s",
            cfg.fetch_context().base_url,
            cfg.prefix,
            cfg.timeout_ms,
            cfg.dry_run,
            cfg.max_entries_per_group,
            cfg.retries,
            cfg.route_interface or "",
        )

        outcome = SyncOutcome()
        if not groups:
            LOGGER.info("No lists to sync (no object-group fqdn with prefix %r)", cfg.prefix)
            return outcome

        LOGGER.info("Found %s group(s) with prefix %r", len(groups), cfg.prefix)

        for index, group in enumerate(groups):
            if index > 0:
                await asyncio.sleep(self._delay_seconds())
            if await self._sync_group(group, routes, outcome):
                outcome.applied += 1
            else:
                outcome.failed += 1

        self._device.save_configuration()
        outcome.routes_created = routes.created

        LOGGER.info(
            "Done. applied=%s, failed=%s, routes_created=%s%s",
            outcome.applied,
            outcome.failed,
            outcome.routes_created,
            " (see errors above)" if outcome.failed else "",
        )
        return outcome

    async def _sync_group(
        self,
        group: DiscoveredGroup,
        routes: RouteState,
        outcome: SyncOutcome,
    ) -> bool:
        interface = self._config.route_interface

        try:
            result = await self._resolver.resolve(group.slug)
        except SyncError as exc:
            LOGGER.error("Failed to load %s: %s", group.slug, exc)
            # Keep the existing group routed even though its contents are stale.
            routes.ensure(group.name, interface, routes.template_for(group.name, interface))
            return False

        domains = sorted(result.domains)
        chunks = chunk(domains, self._config.max_entries_per_group)
        names = chunk_group_names(group.name, len(chunks))

        stats = ""
        if result.skipped_keyword or result.skipped_regexp or result.include_count:
            stats = (
                f", skipped keyword={result.skipped_keyword}, regexp={result.skipped_regexp}, "
                f"includes={result.include_count}, total={result.total_rule_count}"
            )
        LOGGER.info(
            "Sync %s <= %s: %s domain(s)%s%s",
            group.name,
            group.slug,
            len(domains),
            stats,
            f" [split into {len(chunks)} groups]" if len(chunks) > 1 else "",
        )

        base_description = strip_chunk_suffix(group.description or group.slug)
        for position, (name, entries) in enumerate(zip(names, chunks)):
            description = f"{base_description} {position + 1}" if len(chunks) > 1 else base_description
            self._device.recreate_group(name, entries, description)
        outcome.groups.extend(names)

        if len(chunks) > 1:
            LOGGER.warning("Group %s was split; routes must reference: %s", group.name, ", ".join(names))

        # A chunk without a route of its own copies the flags of the chunk before it.
        previous: Optional[RouteInfo] = None
        for name in names:
            hint = None if routes.has_exact(name, interface) else previous
            previous = routes.ensure(name, interface, hint) or previous

        return True

    async def drop_all(self, running_config_text: Optional[str] = None) -> DropOutcome:
        """Remove every managed group (name starting with the prefix)."""

        running_config = self._read_running_config(running_config_text)
        names = find_group_names(running_config, self._config.prefix)

        LOGGER.info("Dropping groups: prefix=%s, groups=%s", self._config.prefix, len(names))
        for name in names:
            LOGGER.info("Drop: no object-group fqdn %s", name)
            self._device.delete_group(name)

        self._device.save_configuration()
        LOGGER.info("Drop complete")
        return DropOutcome(groups=names)
