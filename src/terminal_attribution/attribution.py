"""
Attribution engine: joins a terminal roster to a customer roster.

Every report in the dashboard (device counts, fee rollups, debug views)
is a different aggregation of the same join. This engine performs the join
once through the shared match decision and exposes those aggregations.

Terminals are tracked by roster position, not by value, so two identical
rows stay two terminals.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from .audit_logger import AuditLogger
from .config import RevenueConfig
from .domain_matcher import collect_all_domains, explain_match, normalize_domain
from .enums import CoverageStatus, CustomerSizeCategory, LogLevel
from .models import (
    AttributionConflict,
    AttributionReport,
    CustomerAttribution,
    CustomerCoverage,
    CustomerDomainProfile,
    MatchDecision,
    RevenueRollup,
    TerminalDomainProfile,
)
from .queries import find_matching_terminals, terminal_matches_customer


SAMPLE_TERMINAL_COUNT = 3

# (minimum device count, category), checked top-down
SIZE_THRESHOLDS = (
    (100, CustomerSizeCategory.ENTERPRISE),
    (51, CustomerSizeCategory.LARGE),
    (21, CustomerSizeCategory.MEDIUM),
    (6, CustomerSizeCategory.SMALL),
)

MONTHS_PER_YEAR = 12
CENT = Decimal("0.01")

_STATUS_ORDER = {
    CoverageStatus.CRITICAL: 0,
    CoverageStatus.WARNING: 1,
    CoverageStatus.OK: 2,
}


def size_category(device_count: int) -> CustomerSizeCategory:
    """Bucket a customer by attributed device count."""
    for minimum, category in SIZE_THRESHOLDS:
        if device_count >= minimum:
            return category
    return CustomerSizeCategory.MICRO


class AttributionEngine:
    """
    Attributes terminals to customers and derives report figures.

    The engine never resolves ambiguity: a terminal matched by several
    customers is attributed to each of them and reported as a conflict.
    """

    COMPONENT = "attribution"

    def __init__(
        self,
        revenue_config: Optional[RevenueConfig] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            revenue_config: Fee settings for revenue_rollup (defaults apply if None)
            logger: Optional logger for summaries and conflict warnings
        """
        self._revenue_config = revenue_config or RevenueConfig()
        self._logger = logger

    @property
    def revenue_config(self) -> RevenueConfig:
        return self._revenue_config

    def _log(self, level: LogLevel, message: str, data: Optional[dict] = None) -> None:
        if self._logger:
            self._logger.log(level, self.COMPONENT, message, data)

    def coverage_for(
        self,
        customer: CustomerDomainProfile,
        terminals: Sequence[TerminalDomainProfile],
    ) -> CustomerCoverage:
        """Analyze how many terminals a single customer's domains cover."""
        matched = find_matching_terminals(customer, terminals)

        if not normalize_domain(customer.main_domain):
            status = CoverageStatus.CRITICAL
        elif not matched:
            status = CoverageStatus.WARNING
        else:
            status = CoverageStatus.OK

        return CustomerCoverage(
            customer=customer,
            status=status,
            device_count=len(matched),
            all_domains=collect_all_domains(customer.main_domain, customer.domain_hierarchy),
            sample_terminals=matched[:SAMPLE_TERMINAL_COUNT],
        )

    def analyze_coverage(
        self,
        customers: Sequence[CustomerDomainProfile],
        terminals: Sequence[TerminalDomainProfile],
    ) -> list[CustomerCoverage]:
        """
        Analyze coverage for every customer.

        Returns:
            Coverage entries ordered critical, warning, ok; roster order
            is kept within each status
        """
        results = sorted(
            (self.coverage_for(customer, terminals) for customer in customers),
            key=lambda coverage: _STATUS_ORDER[coverage.status],
        )

        counts = {status.value: 0 for status in CoverageStatus}
        for coverage in results:
            counts[coverage.status.value] += 1
        self._log(LogLevel.INFO, "Coverage analyzed", {
            "customers": len(results),
            "terminals": len(terminals),
            **counts,
        })
        return results

    def attribute(
        self,
        customers: Sequence[CustomerDomainProfile],
        terminals: Sequence[TerminalDomainProfile],
    ) -> AttributionReport:
        """
        Attribute every terminal to every customer it matches.

        Returns:
            AttributionReport with per-customer terminals (roster order),
            terminals claimed by more than one customer, and terminals
            claimed by none
        """
        owners: list[list[CustomerDomainProfile]] = [[] for _ in terminals]
        attributions: list[CustomerAttribution] = []

        for customer in customers:
            matched: list[TerminalDomainProfile] = []
            for index, terminal in enumerate(terminals):
                if terminal_matches_customer(terminal, customer):
                    matched.append(terminal)
                    owners[index].append(customer)
            attributions.append(CustomerAttribution(customer=customer, terminals=matched))

        conflicts = [
            AttributionConflict(terminal=terminals[index], customers=claimants)
            for index, claimants in enumerate(owners)
            if len(claimants) > 1
        ]
        unattributed = [
            terminals[index]
            for index, claimants in enumerate(owners)
            if not claimants
        ]

        for conflict in conflicts:
            self._log(LogLevel.WARN, "Terminal matched by more than one customer", {
                "terminal_domain": conflict.terminal.domain,
                "serial_number": conflict.terminal.serial_number,
                "customers": [c.label for c in conflict.customers],
            })

        report = AttributionReport(
            attributions=attributions,
            conflicts=conflicts,
            unattributed=unattributed,
            terminal_count=len(terminals),
        )
        self._log(LogLevel.INFO, "Terminals attributed", {
            "customers": len(customers),
            "terminals": len(terminals),
            "attributed": report.attributed_count,
            "conflicts": len(conflicts),
            "unattributed": len(unattributed),
        })
        return report

    def monthly_fee_for(self, attribution: CustomerAttribution) -> Decimal:
        """
        Monthly subscription fee for one customer.

        A positive fee on the customer record wins; otherwise the fee is
        device count times the configured per-device fee.
        """
        fee = attribution.customer.subscription_fee
        if fee is None or fee <= 0:
            fee = self._revenue_config.per_device_monthly_fee * attribution.device_count
        return fee.quantize(CENT, rounding=ROUND_HALF_UP)

    def revenue_rollup(self, report: AttributionReport) -> list[RevenueRollup]:
        """
        Compute fee rollups for every customer in a report.

        Returns:
            Rollups sorted by monthly fee, then device count, both descending
        """
        rollups = []
        for attribution in report.attributions:
            monthly = self.monthly_fee_for(attribution)
            rollups.append(RevenueRollup(
                customer=attribution.customer,
                device_count=attribution.device_count,
                monthly_fee=monthly,
                yearly_fee=(monthly * MONTHS_PER_YEAR).quantize(CENT, rounding=ROUND_HALF_UP),
                size_category=size_category(attribution.device_count),
            ))

        rollups.sort(key=lambda r: (r.monthly_fee, r.device_count), reverse=True)
        return rollups

    @staticmethod
    def revenue_totals(rollups: Sequence[RevenueRollup]) -> tuple[Decimal, Decimal]:
        """Sum monthly and yearly fees over rollups."""
        monthly = sum((r.monthly_fee for r in rollups), Decimal("0.00"))
        yearly = sum((r.yearly_fee for r in rollups), Decimal("0.00"))
        return monthly, yearly

    def explain_customer(
        self,
        customer: CustomerDomainProfile,
        terminals: Sequence[TerminalDomainProfile],
    ) -> list[MatchDecision]:
        """Explain the match decision for each terminal against one customer."""
        customer_domain = normalize_domain(customer.main_domain)
        decisions = [
            MatchDecision(
                terminal=terminal,
                normalized_terminal_domain=normalize_domain(terminal.domain),
                normalized_customer_domain=customer_domain,
                reason=explain_match(
                    terminal.domain,
                    customer.main_domain,
                    customer.ignore_main_domain,
                    customer.domain_hierarchy,
                ),
            )
            for terminal in terminals
        ]
        self._log(LogLevel.DEBUG, "Customer explained", {
            "customer": customer.label,
            "terminals": len(decisions),
            "matched": sum(1 for d in decisions if d.matched),
        })
        return decisions
