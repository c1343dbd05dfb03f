"""Domain-list rule parsing and attribute matching (core domain)."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

from core.errors import ParseError
from core.models import VALUE_KINDS, Attribute, Rule

INCLUDE_PREFIX = "include:"

_LINE_SPLIT_RE = re.compile(r"\r?\n")


def parse_attribute(token: str) -> Optional[Attribute]:
    """Parse `@name` / `@name=N`; return None for tokens that are not attributes."""

    if not token.startswith("@") or token == "@":
        return None

    # Only the text up to a second `@` is the attribute body, so `@@@` is empty.
    raw = token[1:].split("@", 1)[0]
    parts = raw.split("=")
    key = parts[0].lower()
    if not key:
        raise ParseError(f"invalid attribute: {token}")

    if len(parts) == 1:
        return Attribute(key=key, value=True)

    try:
        value = int(parts[1], 10)
    except ValueError:
        raise ParseError(f"invalid attribute: {token}") from None
    return Attribute(key=key, value=value)


def parse_rule(tokens: List[str]) -> Rule:
    """Build a `Rule` from the whitespace-separated tokens of one line.

    Attribute tokens may appear anywhere on the line; the first remaining
    token decides the kind and the second one is used as a value when the
    head ends in a bare `kind:`.
    """

    attrs: List[Attribute] = []
    payload: List[str] = []
    for token in tokens:
        attr = parse_attribute(token)
        if attr is not None:
            attrs.append(attr)
            continue
        payload.append(token)

    if not payload:
        raise ParseError("empty entry")
    head = payload[0]
    following = payload[1] if len(payload) > 1 else ""

    if head.startswith(INCLUDE_PREFIX):
        target = head[len(INCLUDE_PREFIX):] or following
        if not target:
            raise ParseError(f"include without target: {' '.join(tokens)}")
        return Rule(kind="include", value=target.lower(), attrs=tuple(attrs))

    if head == "include":
        if not following:
            raise ParseError("include without target")
        return Rule(kind="include", value=following.lower(), attrs=tuple(attrs))

    kind = "domain"
    value = head
    colon = head.find(":")
    if colon > 0:
        kind = head[:colon]
        value = head[colon + 1:] or following

    if kind not in VALUE_KINDS or not value:
        raise ParseError(f"invalid format: {' '.join(tokens)}")

    if kind != "regexp":
        value = value.lower()
    return Rule(kind=kind, value=value, attrs=tuple(attrs))


def strip_comment(line: str) -> str:
    return line.split("#", 1)[0].strip()


def parse_domain_list(text: str) -> List[Rule]:
    """Parse a whole list document; the first bad line aborts the parse."""

    if text.startswith("\ufeff"):
        text = text[1:]

    rules: List[Rule] = []
    for line_no, raw_line in enumerate(_LINE_SPLIT_RE.split(text), start=1):
        line = strip_comment(raw_line)
        if not line:
            continue
        try:
            rules.append(parse_rule(line.split()))
        except ParseError as exc:
            raise ParseError(f"line {line_no}: {exc}") from exc
    return rules


def matches_attr(attrs: Iterable[Attribute], attr_filter: str) -> bool:
    """Return True when a rule with `attrs` passes the include filter.

    Matching logic:
    - `name` keeps only rules tagged `@name`.
    - `!name` keeps everything except rules tagged `@name`.
    """

    negate = attr_filter.startswith("!")
    name = attr_filter.lstrip("!") if negate else attr_filter

    tagged = any(attr.key == name for attr in attrs)
    return not tagged if negate else tagged
