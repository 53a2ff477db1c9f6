"""
Enumeration types for the terminal attribution system.
"""

from enum import Enum


class MatchReason(Enum):
    """Which rule decided a terminal/customer match."""

    NO_TERMINAL_DOMAIN = "no_terminal_domain"
    NO_CUSTOMER_DOMAIN = "no_customer_domain"
    EXACT_MATCH = "exact_match"
    NO_EXACT_MATCH = "no_exact_match"
    MAIN_DOMAIN_IGNORED = "main_domain_ignored"
    DOTTED_SUBDOMAIN = "dotted_subdomain"
    HIERARCHY_ALIAS = "hierarchy_alias"
    NOT_A_SUBDOMAIN = "not_a_subdomain"

    @property
    def matched(self) -> bool:
        """True if this reason attributes the terminal to the customer."""
        return self in _MATCHING_REASONS


_MATCHING_REASONS = frozenset({
    MatchReason.EXACT_MATCH,
    MatchReason.DOTTED_SUBDOMAIN,
    MatchReason.HIERARCHY_ALIAS,
})


class CoverageStatus(Enum):
    """Health of a customer's domain coverage."""

    CRITICAL = "critical"  # no main domain at all
    WARNING = "warning"  # main domain present, nothing matched
    OK = "ok"


class CustomerSizeCategory(Enum):
    """Customer size bucket derived from attributed device count."""

    MICRO = "micro"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    ENTERPRISE = "enterprise"


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class RecordErrorCode(Enum):
    """Error codes for record adapter failures."""

    NOT_A_MAPPING = "not_a_mapping"
    INVALID_FIELD = "invalid_field"
    HIERARCHY_TOO_DEEP = "hierarchy_too_deep"


class RosterErrorCode(Enum):
    """Error codes for roster source failures."""

    FILE_NOT_FOUND = "file_not_found"
    PARSE_ERROR = "parse_error"
    NETWORK_ERROR = "network_error"
    TLS_ERROR = "tls_error"
    HTTP_ERROR = "http_error"
    NOT_CONFIGURED = "not_configured"
