"""Route template lookup and per-run route bookkeeping."""

from __future__ import annotations

import logging
from typing import Optional

from core.device import DeviceCommands
from core.models import RouteInfo
from core.running_config import RouteIndex, chunk_root, parse_routes

LOGGER = logging.getLogger(__name__)

DEFAULT_ROUTE = RouteInfo(auto=True, reject=False, disabled=False)


def find_route_template(
    group_name: str,
    interface: Optional[str],
    routes: RouteIndex,
) -> Optional[RouteInfo]:
    """Find the flags a new route for `group_name` should copy.

    An exact `(group, interface)` route wins. Otherwise any route on the same
    interface that belongs to the same chunk family is used, so `list-3`
    inherits from `list-2` or from the unsplit `list`.
    """

    if not interface:
        return None
    exact = routes.get((group_name, interface))
    if exact:
        return exact

    root = chunk_root(group_name)
    for (group, route_iface), info in routes.items():
        if route_iface != interface:
            continue
        if group.startswith(f"{group_name}-"):
            return info
        if root and (group == root or group.startswith(f"{root}-")):
            return info
    return None


class RouteState:
    """Ensures each `(group, interface)` route is issued at most once per run."""

    def __init__(self, running_config: str, device: DeviceCommands) -> None:
        self.templates = parse_routes(running_config)
        self.created = 0
        self._device = device
        self._seen: set[tuple[str, str]] = set()

        disabled = [f"{group}::{iface}" for (group, iface), info in self.templates.items() if info.disabled]
        if disabled:
            LOGGER.info("Disabled routes: %s", ", ".join(disabled))

    def template_for(self, group_name: str, interface: Optional[str]) -> Optional[RouteInfo]:
        return find_route_template(group_name, interface, self.templates)

    def has_exact(self, group_name: str, interface: Optional[str]) -> bool:
        return bool(interface) and (group_name, interface) in self.templates

    def ensure(
        self,
        group_name: str,
        interface: Optional[str],
        template_hint: Optional[RouteInfo] = None,
    ) -> Optional[RouteInfo]:
        """Issue the route for `group_name` unless it was already handled.

        Returns the flags used, or None when nothing was issued.
        """

        if not interface:
            return None
        key = (group_name, interface)
        if key in self._seen:
            return None

        info = (
            template_hint
            or self.templates.get(key)
            or find_route_template(group_name, interface, self.templates)
            or DEFAULT_ROUTE
        )
        self._device.add_route(group_name, interface, info)
        self._seen.add(key)
        self.created += 1
        return info
