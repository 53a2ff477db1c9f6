"""
Roster queries built on the match decision.

Report code asks two questions of a customer: which terminals are theirs,
and do they have any at all. Both go through matches_domain so every report
attributes terminals the same way.
"""

from typing import Iterable, Sequence

from .domain_matcher import matches_domain
from .models import CustomerDomainProfile, TerminalDomainProfile


def terminal_matches_customer(
    terminal: TerminalDomainProfile,
    customer: CustomerDomainProfile,
) -> bool:
    """Apply the match decision to a terminal/customer profile pair."""
    return matches_domain(
        terminal.domain,
        customer.main_domain,
        customer.ignore_main_domain,
        customer.domain_hierarchy,
    )


def find_matching_terminals(
    customer: CustomerDomainProfile,
    terminals: Sequence[TerminalDomainProfile],
) -> list[TerminalDomainProfile]:
    """Return the customer's terminals, in roster order."""
    return [t for t in terminals if terminal_matches_customer(t, customer)]


def customer_has_any_match(
    customer: CustomerDomainProfile,
    terminals: Iterable[TerminalDomainProfile],
) -> bool:
    """Return True as soon as one terminal matches; builds no result list."""
    return any(terminal_matches_customer(t, customer) for t in terminals)
