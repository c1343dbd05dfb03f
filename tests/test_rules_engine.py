from __future__ import annotations

import pytest

from core.errors import ParseError
from core.models import Attribute, Rule
from core.rules_engine import matches_attr, parse_attribute, parse_domain_list, parse_rule


def test_parses_attributes_and_keeps_regexp_case() -> None:
    rules = parse_domain_list(
        "full:Example.COM @Ru\n"
        "regexp:^ChatGPT-Async-WebPs-Prod-\\S+-\\d+\\.webpubsub\\.azure\\.com$ @Ads\n"
    )

    assert rules[0] == Rule(kind="full", value="example.com", attrs=(Attribute("ru", True),))
    assert rules[1].kind == "regexp"
    assert rules[1].value == "^ChatGPT-Async-WebPs-Prod-\\S+-\\d+\\.webpubsub\\.azure\\.com$"
    assert rules[1].attrs == (Attribute("ads", True),)


def test_plain_entries_default_to_domain_and_lowercase() -> None:
    assert parse_rule(["Google.COM"]) == Rule(kind="domain", value="google.com")
    assert parse_rule(["keyword:YouTube"]) == Rule(kind="keyword", value="youtube")
    assert parse_rule(["domain:", "Example.org"]) == Rule(kind="domain", value="example.org")


def test_include_forms() -> None:
    assert parse_rule(["include:Category-Ads"]).value == "category-ads"
    assert parse_rule(["include:", "google"]) == Rule(kind="include", value="google")
    assert parse_rule(["include", "google", "@cn"]) == Rule(
        kind="include", value="google", attrs=(Attribute("cn", True),)
    )


def test_attribute_values() -> None:
    assert parse_attribute("example.com") is None
    assert parse_attribute("@") is None
    assert parse_attribute("@!CN") == Attribute("!cn", True)
    assert parse_attribute("@rank=5") == Attribute("rank", 5)
    with pytest.raises(ParseError):
        parse_attribute("@rank=high")


def test_comments_blank_lines_and_bom_are_ignored() -> None:
    rules = parse_domain_list("\ufeff# header\n\n  example.com   # trailing\r\nfull:a.example\n")
    assert [rule.value for rule in rules] == ["example.com", "a.example"]


@pytest.mark.parametrize(
    "text",
    [
        "include:\n",
        "include\n",
        "foo @@@\n",
        "unknown:foo.com\n",
        "full:\n",
        "@ads\n",
    ],
)
def test_invalid_lines_raise(text: str) -> None:
    with pytest.raises(ParseError):
        parse_domain_list(text)


def test_parse_error_names_line_number() -> None:
    with pytest.raises(ParseError, match="line 3"):
        parse_domain_list("a.com\nb.com\nbad:c.com\n")


def test_matches_attr_positive_and_negated() -> None:
    tagged_ru = (Attribute("ru", True),)
    tagged_ads = (Attribute("ads", True),)
    untagged: tuple[Attribute, ...] = ()

    assert matches_attr(tagged_ru, "ru")
    assert not matches_attr(tagged_ads, "ru")
    assert not matches_attr(untagged, "ru")

    assert matches_attr(tagged_ru, "!ads")
    assert matches_attr(untagged, "!ads")
    assert not matches_attr(tagged_ads, "!ads")
    assert not matches_attr(tagged_ads, "!!ads")
