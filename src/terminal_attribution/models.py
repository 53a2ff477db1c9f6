"""
Data models for the terminal attribution system.

Two groups of shapes live here: the profiles the matching engine reads
(customer domain profile, terminal domain profile, domain hierarchy nodes)
and the report shapes produced by the attribution engine.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from .enums import CoverageStatus, CustomerSizeCategory, MatchReason


@dataclass
class DomainNode:
    """One node of a customer's domain hierarchy tree."""

    name: str
    children: list["DomainNode"] = field(default_factory=list)
    id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass
class CustomerDomainProfile:
    """
    The part of a customer record relevant to matching.

    main_domain is already resolved from the legacy field names by the
    record adapter; None means the customer declared no domain and can
    never be attributed a terminal.
    """

    main_domain: Optional[str] = None
    ignore_main_domain: bool = False
    domain_hierarchy: list[DomainNode] = field(default_factory=list)
    id: Optional[str] = None
    name: Optional[str] = None
    subscription_fee: Optional[Decimal] = None  # monthly, set by the customer record

    @property
    def label(self) -> str:
        """Short human identifier for logs and reports."""
        return self.id or self.name or self.main_domain or "<unnamed>"


@dataclass
class TerminalDomainProfile:
    """The part of a terminal/product record relevant to matching."""

    domain: Optional[str] = None
    id: Optional[str] = None
    serial_number: Optional[str] = None
    terminal_model: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "serial_number": self.serial_number,
            "domain": self.domain,
            "terminal_model": self.terminal_model,
        }


@dataclass
class MatchDecision:
    """Outcome of matching one terminal against one customer."""

    terminal: TerminalDomainProfile
    normalized_terminal_domain: str
    normalized_customer_domain: str
    reason: MatchReason

    @property
    def matched(self) -> bool:
        return self.reason.matched


@dataclass
class CustomerCoverage:
    """Device coverage analysis for a single customer."""

    customer: CustomerDomainProfile
    status: CoverageStatus
    device_count: int
    all_domains: list[str]
    sample_terminals: list[TerminalDomainProfile] = field(default_factory=list)


@dataclass
class CustomerAttribution:
    """Terminals attributed to a single customer."""

    customer: CustomerDomainProfile
    terminals: list[TerminalDomainProfile] = field(default_factory=list)

    @property
    def device_count(self) -> int:
        return len(self.terminals)


@dataclass
class AttributionConflict:
    """A terminal that more than one customer's profile matches."""

    terminal: TerminalDomainProfile
    customers: list[CustomerDomainProfile]


@dataclass
class AttributionReport:
    """Result of attributing a terminal roster to a customer roster."""

    attributions: list[CustomerAttribution]
    conflicts: list[AttributionConflict]
    unattributed: list[TerminalDomainProfile]
    terminal_count: int

    @property
    def attributed_count(self) -> int:
        """Number of distinct terminals matched by at least one customer."""
        return self.terminal_count - len(self.unattributed)

    def to_dict(self) -> dict:
        return {
            "terminal_count": self.terminal_count,
            "attributed_count": self.attributed_count,
            "customers": [
                {
                    "id": item.customer.id,
                    "name": item.customer.name,
                    "main_domain": item.customer.main_domain,
                    "ignore_main_domain": item.customer.ignore_main_domain,
                    "device_count": item.device_count,
                    "terminals": [t.to_dict() for t in item.terminals],
                }
                for item in self.attributions
            ],
            "conflicts": [
                {
                    "terminal": conflict.terminal.to_dict(),
                    "customers": [c.label for c in conflict.customers],
                }
                for conflict in self.conflicts
            ],
            "unattributed": [t.to_dict() for t in self.unattributed],
        }


@dataclass
class RevenueRollup:
    """Subscription fee rollup for a single customer."""

    customer: CustomerDomainProfile
    device_count: int
    monthly_fee: Decimal
    yearly_fee: Decimal
    size_category: CustomerSizeCategory

    def to_dict(self) -> dict:
        return {
            "customer": self.customer.label,
            "device_count": self.device_count,
            "monthly_fee": str(self.monthly_fee),
            "yearly_fee": str(self.yearly_fee),
            "size_category": self.size_category.value,
        }
