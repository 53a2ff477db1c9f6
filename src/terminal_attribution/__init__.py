"""
Terminal Attribution - domain-based matching of payment terminals to customers.

This package decides which customer a payment terminal belongs to by
comparing the terminal's domain with the customer's main domain and
declared sub-domain hierarchy, and derives device counts, fee rollups
and coverage reports from that single decision.
"""

__version__ = "0.1.0"

from terminal_attribution.exceptions import (
    AttributionError,
    RecordError,
    ConfigurationError,
    RosterSourceError,
)
from terminal_attribution.enums import (
    MatchReason,
    CoverageStatus,
    CustomerSizeCategory,
    LogLevel,
    RecordErrorCode,
    RosterErrorCode,
)
from terminal_attribution.models import (
    DomainNode,
    CustomerDomainProfile,
    TerminalDomainProfile,
    MatchDecision,
    CustomerCoverage,
    CustomerAttribution,
    AttributionConflict,
    AttributionReport,
    RevenueRollup,
)
from terminal_attribution.domain_matcher import (
    normalize_domain,
    collect_subdomain_names,
    collect_all_domains,
    explain_match,
    matches_domain,
    MAX_HIERARCHY_DEPTH,
)
from terminal_attribution.queries import (
    find_matching_terminals,
    customer_has_any_match,
    terminal_matches_customer,
)
from terminal_attribution.records import (
    customer_profile_from_record,
    terminal_profile_from_record,
    domain_node_from_dict,
    parse_domain_hierarchy,
    resolve_main_domain,
)
from terminal_attribution.config import (
    RevenueConfig,
    SupabaseConfig,
    LoggingConfig,
    SystemConfig,
    load_config,
    load_config_from_file,
    save_config_to_file,
)
from terminal_attribution.audit_logger import (
    AuditLogger,
    LogEntry,
)
from terminal_attribution.attribution import (
    AttributionEngine,
    size_category,
)
from terminal_attribution.roster_source import (
    JsonRosterSource,
    SupabaseRosterSource,
)
from terminal_attribution.i18n import (
    get_message,
    get_all_message_keys,
    get_missing_translations,
    validate_translations,
    TRANSLATIONS,
    SUPPORTED_LANGUAGES,
    DEFAULT_LANGUAGE,
)
from terminal_attribution.cli import (
    main as cli_main,
    create_parser,
)

__all__ = [
    # Exceptions
    "AttributionError",
    "RecordError",
    "ConfigurationError",
    "RosterSourceError",
    # Enums
    "MatchReason",
    "CoverageStatus",
    "CustomerSizeCategory",
    "LogLevel",
    "RecordErrorCode",
    "RosterErrorCode",
    # Models
    "DomainNode",
    "CustomerDomainProfile",
    "TerminalDomainProfile",
    "MatchDecision",
    "CustomerCoverage",
    "CustomerAttribution",
    "AttributionConflict",
    "AttributionReport",
    "RevenueRollup",
    # Domain Matcher
    "normalize_domain",
    "collect_subdomain_names",
    "collect_all_domains",
    "explain_match",
    "matches_domain",
    "MAX_HIERARCHY_DEPTH",
    # Queries
    "find_matching_terminals",
    "customer_has_any_match",
    "terminal_matches_customer",
    # Records
    "customer_profile_from_record",
    "terminal_profile_from_record",
    "domain_node_from_dict",
    "parse_domain_hierarchy",
    "resolve_main_domain",
    # Configuration
    "RevenueConfig",
    "SupabaseConfig",
    "LoggingConfig",
    "SystemConfig",
    "load_config",
    "load_config_from_file",
    "save_config_to_file",
    # Logging
    "AuditLogger",
    "LogEntry",
    # Attribution Engine
    "AttributionEngine",
    "size_category",
    # Roster Sources
    "JsonRosterSource",
    "SupabaseRosterSource",
    # I18n
    "get_message",
    "get_all_message_keys",
    "get_missing_translations",
    "validate_translations",
    "TRANSLATIONS",
    "SUPPORTED_LANGUAGES",
    "DEFAULT_LANGUAGE",
    # CLI
    "cli_main",
    "create_parser",
]
