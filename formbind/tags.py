"""
formbind Directive Parser
=========================

Parses a field directive into rule invocations.

Grammar:
    directive = rule (";" rule)*
    rule      = name | name "(" arg ("," arg)* ")"

Example:
    parse_directive("Required;Size(5);In(a,b,c)")
    # (RuleInvocation("Required", ()),
    #  RuleInvocation("Size", ("5",)),
    #  RuleInvocation("In", ("a", "b", "c")))

Malformed segments are dropped with a warning; the rest of the
directive is still parsed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple

from formbind.utils.logger import get_logger

logger = get_logger("formbind.tags")

_RULE_PATTERN = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)(?:\((.*)\))?$", re.DOTALL)


@dataclass(frozen=True)
class RuleInvocation:
    """
    One rule reference inside a directive.

    Attributes:
        name: Rule name, e.g. "MinSize"
        params: Raw parameter strings, in declaration order
    """

    name: str
    params: Tuple[str, ...] = ()

    @property
    def argument(self) -> str:
        """Raw text between the parentheses."""
        return ",".join(self.params)

    def __str__(self) -> str:
        if not self.params:
            return self.name
        return f"{self.name}({self.argument})"


def parse_rule(segment: str) -> Optional[RuleInvocation]:
    """
    Parse a single rule segment.

    Returns:
        RuleInvocation, or None if the segment is malformed
    """
    match = _RULE_PATTERN.match(segment.strip())
    if not match:
        return None

    name, inner = match.groups()

    if inner is None:
        return RuleInvocation(name)

    # Parentheses may not nest or repeat inside a rule
    if "(" in inner or ")" in inner:
        return None

    return RuleInvocation(name, tuple(inner.split(",")))


def parse_directive(directive: Optional[str]) -> Tuple[RuleInvocation, ...]:
    """
    Parse a directive string.

    Args:
        directive: Raw directive text (None and "" give no rules)

    Returns:
        Rule invocations in declaration order
    """
    if not directive:
        return ()

    if not isinstance(directive, str):
        logger.warning("Ignored non-string directive", directive=repr(directive))
        return ()

    rules = []

    for segment in directive.split(";"):
        if not segment.strip():
            continue

        rule = parse_rule(segment)
        if rule is None:
            logger.warning("Dropped malformed directive segment", segment=segment, directive=directive)
            continue

        rules.append(rule)

    return tuple(rules)
