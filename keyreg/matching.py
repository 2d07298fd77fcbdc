# keyreg/matching.py
"""
Key matching policies for lineage lookups.

A matcher is a plain function match(pattern, key) -> bool. Which
interpretation applies is a configuration choice:

- substring: pattern occurs anywhere in the key
- regex: re.search(pattern, key)
- exact: pattern equals the key
"""

import re
from typing import Callable, Dict

from .errors import InvalidConfiguration

Matcher = Callable[[str, str], bool]


def match_substring(pattern: str, key: str) -> bool:
    return pattern in key


def match_regex(pattern: str, key: str) -> bool:
    try:
        return re.search(pattern, key) is not None
    except re.error as e:
        raise InvalidConfiguration(f"bad pattern {pattern!r}: {e}") from e


def match_exact(pattern: str, key: str) -> bool:
    return pattern == key


MATCH_POLICIES: Dict[str, Matcher] = {
    "substring": match_substring,
    "regex": match_regex,
    "exact": match_exact,
}


def make_matcher(policy: str) -> Matcher:
    """
    Look up the matcher for a policy name.

    Regex patterns are checked lazily, on first use.
    """
    try:
        return MATCH_POLICIES[policy]
    except KeyError:
        raise InvalidConfiguration(
            f"unknown match policy {policy!r}; expected one of {sorted(MATCH_POLICIES)}"
        ) from None


def is_wildcard(query: str, wildcard: str = "ALL") -> bool:
    """Check whether a query asks for every edge."""
    return query.strip().upper() == wildcard.upper()
