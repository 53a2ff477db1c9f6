"""
Domain normalization and terminal-to-customer matching.

A terminal carries one domain string; a customer carries a main domain, an
optional tree of sub-domain aliases and an "ignore main domain" flag. This
module decides whether the terminal belongs to the customer.

Every function here is total and pure: missing or malformed domains resolve
to "no match", never to an exception.
"""

import re
from typing import Iterator, Optional, Sequence

from .enums import MatchReason
from .models import DomainNode


PROTOCOL_PATTERN = re.compile(r"^https?://")

# Hierarchies are trees by construction; the cap only bounds traversal of
# malformed input.
MAX_HIERARCHY_DEPTH = 64


def normalize_domain(domain: Optional[str]) -> str:
    """
    Convert a domain string to its comparison form.

    Lowercases, trims whitespace, strips a leading http:// or https:// and a
    trailing slash. The steps are repeated until the value is stable, so the
    result is a fixed point: normalize_domain(normalize_domain(s)) equals
    normalize_domain(s) for every string.

    Args:
        domain: Raw domain string, may be None or empty

    Returns:
        Normalized domain, or "" for absent/empty input
    """
    if not domain:
        return ""

    normalized = domain
    while True:
        candidate = PROTOCOL_PATTERN.sub("", normalized.lower().strip(), count=1)
        if candidate.endswith("/"):
            candidate = candidate[:-1]
        if candidate == normalized:
            return candidate
        normalized = candidate


def iter_hierarchy_names(hierarchy: Optional[Sequence[DomainNode]]) -> Iterator[str]:
    """
    Yield normalized node names depth-first, parents before children.

    Nodes with an empty name are skipped but their children are still
    visited. Nodes nested deeper than MAX_HIERARCHY_DEPTH are not visited.
    """
    if not hierarchy:
        return

    stack: list[tuple[DomainNode, int]] = [(node, 1) for node in reversed(hierarchy)]
    while stack:
        node, depth = stack.pop()
        name = normalize_domain(node.name)
        if name:
            yield name
        if node.children and depth < MAX_HIERARCHY_DEPTH:
            stack.extend((child, depth + 1) for child in reversed(node.children))


def collect_subdomain_names(hierarchy: Optional[Sequence[DomainNode]]) -> set[str]:
    """Flatten a domain hierarchy into the set of its normalized names."""
    return set(iter_hierarchy_names(hierarchy))


def collect_all_domains(
    main_domain: Optional[str],
    hierarchy: Optional[Sequence[DomainNode]] = None,
) -> list[str]:
    """
    List a customer's domains: the main domain first, then the hierarchy.

    Used for diagnostics and reports, not by the match decision.
    """
    domains: list[str] = []
    main = normalize_domain(main_domain)
    if main:
        domains.append(main)
    domains.extend(iter_hierarchy_names(hierarchy))
    return domains


def explain_match(
    terminal_domain: Optional[str],
    customer_main_domain: Optional[str],
    ignore_main_domain: bool = False,
    hierarchy: Optional[Sequence[DomainNode]] = None,
) -> MatchReason:
    """
    Decide whether a terminal domain belongs to a customer and say why.

    Default mode accepts only an exact normalized match against the main
    domain. With ignore_main_domain the rules are, in order:

    1. exact match against the main domain -> rejected
    2. terminal domain ends with "." + main domain -> accepted
    3. terminal domain equals a hierarchy node name -> accepted
    4. anything else -> rejected

    Args:
        terminal_domain: Domain reported for the terminal
        customer_main_domain: Customer's resolved main domain
        ignore_main_domain: Restrict matching to sub-domains only
        hierarchy: Customer's declared sub-domain tree

    Returns:
        The MatchReason of the deciding rule; reason.matched is the verdict
    """
    product = normalize_domain(terminal_domain)
    if not product:
        return MatchReason.NO_TERMINAL_DOMAIN

    customer = normalize_domain(customer_main_domain)
    if not customer:
        return MatchReason.NO_CUSTOMER_DOMAIN

    if not ignore_main_domain:
        if product == customer:
            return MatchReason.EXACT_MATCH
        return MatchReason.NO_EXACT_MATCH

    if product == customer:
        return MatchReason.MAIN_DOMAIN_IGNORED

    if product.endswith("." + customer):
        return MatchReason.DOTTED_SUBDOMAIN

    # Bare-word aliases (e.g. TINTCAFE under SIPAY34) only match by declaration.
    if hierarchy and product in collect_subdomain_names(hierarchy):
        return MatchReason.HIERARCHY_ALIAS

    return MatchReason.NOT_A_SUBDOMAIN


def matches_domain(
    terminal_domain: Optional[str],
    customer_main_domain: Optional[str],
    ignore_main_domain: bool = False,
    hierarchy: Optional[Sequence[DomainNode]] = None,
) -> bool:
    """Return True if the terminal domain attributes to the customer."""
    return explain_match(
        terminal_domain, customer_main_domain, ignore_main_domain, hierarchy
    ).matched
