"""Keyword-based classification of contracts into UI categories."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .constants import DEFAULT_CATEGORY_RULES, FALLBACK_CATEGORY
from .types import Context


@dataclass(frozen=True)
class CategoryRule:
    """A category that applies when any keyword occurs in the contract's text."""

    category: str
    theme: str
    keywords: Tuple[str, ...]

    def matches(self, haystacks: Sequence[str]) -> bool:
        return any(keyword in haystack for keyword in self.keywords for haystack in haystacks)


def build_rules(raw_rules: Sequence[Dict[str, Any]]) -> List[CategoryRule]:
    """
    Build category rules from their JSON form.

    Args:
        raw_rules: Ordered list of {"category", "theme", "keywords"} dicts

    Returns:
        List of CategoryRule with lower-cased keywords, order preserved

    Raises:
        KeyError: If a rule is missing a required field
    """
    return [
        CategoryRule(
            category=rule["category"],
            theme=rule["theme"],
            keywords=tuple(keyword.lower() for keyword in rule["keywords"]),
        )
        for rule in raw_rules
    ]


DEFAULT_RULES = build_rules(DEFAULT_CATEGORY_RULES)


def classify(
    name: str,
    path: str,
    relative_path: str,
    description: Optional[str],
    rules: Optional[Sequence[CategoryRule]] = None,
) -> Context:
    """
    Assign a category and theme color to a contract.

    Args:
        name: Contract or interface name
        path: Interface file key
        relative_path: Directory of the interface file
        description: Full description text, if any
        rules: Ordered rules; defaults to the built-in table

    Returns:
        Context of the first matching rule, or the "general" fallback
    """
    if rules is None:
        rules = DEFAULT_RULES

    haystacks = [text.lower() for text in (name, path, relative_path, description or "") if text]
    for rule in rules:
        if rule.matches(haystacks):
            return Context(category=rule.category, theme=rule.theme)

    return Context(category=FALLBACK_CATEGORY["category"], theme=FALLBACK_CATEGORY["theme"])
