"""Recursive domain-list resolution.

The resolver turns a list key into a flat domain set by fetching the list,
expanding its `include` rules depth-first and classifying the remaining
rules. It only talks to the outside world through `ListSourcePort`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional
from urllib.parse import quote

from core.config import FetchContext
from core.errors import CycleError, FetchError
from core.models import ResolvedListResult, Rule
from core.ports import ListSourcePort
from core.rules_engine import matches_attr, parse_domain_list

LOGGER = logging.getLogger(__name__)

MAX_RETRY_DELAY_MS = 3000
RETRY_STEP_MS = 500


def retry_delay_ms(attempt: int) -> int:
    return min(MAX_RETRY_DELAY_MS, attempt * RETRY_STEP_MS)


class _Resolution:
    """State owned by one top-level `resolve` call.

    - cache: parsed rules per list key, so a shared child is fetched once
    - included: inclusion identities (`key` or `key@attr`) already expanded
    - rules/include_count/total_rule_count: accumulated output
    """

    def __init__(self) -> None:
        self.cache: dict[str, List[Rule]] = {}
        self.included: set[str] = set()
        self.rules: List[Rule] = []
        self.include_count = 0
        self.total_rule_count = 0


class ListResolver:
    """Resolves list keys into `ResolvedListResult`s."""

    def __init__(
        self,
        context: FetchContext,
        source: ListSourcePort,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        self._context = context
        self._source = source
        self._sleep = sleep or asyncio.sleep

    def url_for(self, key: str) -> str:
        return self._context.base_url + quote(key, safe="")

    async def resolve(self, key: str) -> ResolvedListResult:
        """Resolve `key` and everything it includes.

        Raises `CycleError`, `FetchError` or `ParseError`; each is fatal for
        this resolution only.
        """

        state = _Resolution()
        await self._expand(key, state, stack=[], attr_filter=None)

        result = ResolvedListResult(
            include_count=state.include_count,
            total_rule_count=state.total_rule_count,
        )
        for rule in state.rules:
            if rule.kind == "keyword":
                result.skipped_keyword += 1
                continue
            if rule.kind == "regexp":
                result.skipped_regexp += 1
                continue
            result.domains.add(rule.value)
        return result

    async def _expand(
        self,
        key: str,
        state: _Resolution,
        stack: List[str],
        attr_filter: Optional[str],
    ) -> None:
        if key in stack:
            raise CycleError([*stack, key])

        raw_rules = await self._load_cached(key, state)
        state.total_rule_count += len(raw_rules)
        state.include_count += sum(1 for rule in raw_rules if rule.kind == "include")

        # The filter only scopes this list; nested includes carry their own.
        if attr_filter:
            rules = [rule for rule in raw_rules if matches_attr(rule.attrs, attr_filter)]
        else:
            rules = raw_rules

        child_stack = [*stack, key]
        for rule in rules:
            if rule.kind != "include":
                state.rules.append(rule)
                continue

            filters: List[Optional[str]] = [attr.key for attr in rule.attrs] or [None]
            for child_filter in filters:
                identity = f"{rule.value}@{child_filter}" if child_filter else rule.value
                if identity in state.included:
                    continue
                state.included.add(identity)
                await self._expand(rule.value, state, child_stack, child_filter)

    async def _load_cached(self, key: str, state: _Resolution) -> List[Rule]:
        cached = state.cache.get(key)
        if cached is not None:
            return cached
        rules = await self._load(key)
        state.cache[key] = rules
        return rules

    async def _load(self, key: str) -> List[Rule]:
        url = self.url_for(key)
        retries = max(1, self._context.retries)
        last_error: Optional[Exception] = None

        for attempt in range(1, retries + 1):
            try:
                text = await self._source.fetch_text(url, self._context.timeout_ms)
                return parse_domain_list(text)
            except Exception as exc:
                last_error = exc
                if attempt == retries:
                    break
                delay = retry_delay_ms(attempt)
                LOGGER.debug("Fetch attempt %s for %s failed (%s), retrying in %sms", attempt, url, exc, delay)
                await self._sleep(delay / 1000)

        reason = str(last_error) or type(last_error).__name__
        raise FetchError(url, reason) from last_error
