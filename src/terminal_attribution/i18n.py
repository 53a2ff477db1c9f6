"""
Internationalization (i18n) for the terminal attribution system.

Operators read the dashboard in Turkish; English is provided for everyone
else. Every MatchReason and CoverageStatus has a message under
"match.<value>" and "coverage.<value>".
"""

from typing import Optional


SUPPORTED_LANGUAGES = frozenset({"tr", "en"})
DEFAULT_LANGUAGE = "tr"


# Structure: {message_key: {language_code: translated_message}}
TRANSLATIONS: dict[str, dict[str, str]] = {
    # Match reasons
    "match.no_terminal_domain": {
        "tr": "Ürün domain bilgisi yok - EŞLEŞMEDİ",
        "en": "Terminal has no domain - NOT MATCHED",
    },
    "match.no_customer_domain": {
        "tr": "Müşteri domain bilgisi yok - EŞLEŞMEDİ",
        "en": "Customer has no domain - NOT MATCHED",
    },
    "match.exact_match": {
        "tr": "Tam domain eşleşmesi ({terminal} = {customer}) - EŞLEŞTİ",
        "en": "Exact domain match ({terminal} = {customer}) - MATCHED",
    },
    "match.no_exact_match": {
        "tr": "Tam eşleşme yok ({terminal} ≠ {customer}) - EŞLEŞMEDİ",
        "en": "No exact match ({terminal} ≠ {customer}) - NOT MATCHED",
    },
    "match.main_domain_ignored": {
        "tr": "Ana domain görmezden gelme AÇIK, ürün domain'i ({terminal}) ana domain ile tam eşleşiyor - EŞLEŞMEDİ",
        "en": "Main domain is ignored and the terminal domain ({terminal}) equals it - NOT MATCHED",
    },
    "match.dotted_subdomain": {
        "tr": "Alt domain formatı tespit edildi ({terminal}) - EŞLEŞTİ",
        "en": "Dotted sub-domain of {customer} ({terminal}) - MATCHED",
    },
    "match.hierarchy_alias": {
        "tr": "Domain hiyerarşisinde tanımlı ({terminal}) - EŞLEŞTİ",
        "en": "Declared in the domain hierarchy ({terminal}) - MATCHED",
    },
    "match.not_a_subdomain": {
        "tr": "Ana domain görmezden gelme AÇIK, ürün domain'i ({terminal}) ne alt domain formatında ne de hiyerarşide tanımlı - EŞLEŞMEDİ",
        "en": "Main domain is ignored and {terminal} is neither a dotted sub-domain nor in the hierarchy - NOT MATCHED",
    },

    # Coverage statuses
    "coverage.critical": {
        "tr": "Kritik: domain bilgisi yok",
        "en": "Critical: no domain",
    },
    "coverage.warning": {
        "tr": "Uyarı: domain var ama eşleşen cihaz yok",
        "en": "Warning: domain set but no matching devices",
    },
    "coverage.ok": {
        "tr": "Tamam",
        "en": "OK",
    },

    # CLI messages
    "cli.loading_rosters": {
        "tr": "Müşteri ve cihaz listeleri yükleniyor...",
        "en": "Loading customer and terminal rosters...",
    },
    "cli.summary_customers": {
        "tr": "Müşteri sayısı: {count}",
        "en": "Customers: {count}",
    },
    "cli.summary_terminals": {
        "tr": "Cihaz sayısı: {count} (eşleşen: {attributed})",
        "en": "Terminals: {count} (attributed: {attributed})",
    },
    "cli.summary_conflicts": {
        "tr": "Birden fazla müşteriye eşleşen cihaz: {count}",
        "en": "Terminals matched by more than one customer: {count}",
    },
    "cli.summary_unattributed": {
        "tr": "Hiçbir müşteriye eşleşmeyen cihaz: {count}",
        "en": "Terminals matched by no customer: {count}",
    },
    "cli.summary_revenue": {
        "tr": "Aylık toplam: {monthly} {currency} / Yıllık toplam: {yearly} {currency}",
        "en": "Monthly total: {monthly} {currency} / Yearly total: {yearly} {currency}",
    },
    "cli.report_written": {
        "tr": "Rapor yazıldı: {path}",
        "en": "Report written to: {path}",
    },
    "cli.coverage_clean": {
        "tr": "Tüm müşterilerin domain eşleşmesi tamam.",
        "en": "All customers have matching devices.",
    },
    "cli.no_roster": {
        "tr": "Hata: --customers ve --terminals ya da --supabase belirtilmeli",
        "en": "Error: give --customers and --terminals, or --supabase",
    },
    "cli.supabase_not_configured": {
        "tr": "Hata: SUPABASE_URL ve SUPABASE_KEY tanımlı değil",
        "en": "Error: SUPABASE_URL and SUPABASE_KEY are not set",
    },
}


def get_message(
    key: str,
    language: Optional[str] = None,
    **kwargs,
) -> str:
    """
    Get a translated message by key.

    Args:
        key: The message key (e.g., 'match.exact_match')
        language: Language code ('tr' or 'en'). Defaults to DEFAULT_LANGUAGE.
        **kwargs: Format arguments for the message template

    Returns:
        The translated and formatted message string.
        If the key is not found, returns the key itself.
        If the language is not found, falls back to DEFAULT_LANGUAGE.

    Examples:
        >>> get_message('coverage.ok', 'en')
        'OK'
    """
    if language is None or language not in SUPPORTED_LANGUAGES:
        language = DEFAULT_LANGUAGE

    translations = TRANSLATIONS.get(key)
    if translations is None:
        return key

    message = translations.get(language)
    if message is None:
        message = translations.get(DEFAULT_LANGUAGE)
    if message is None:
        return key

    if kwargs:
        try:
            message = message.format(**kwargs)
        except KeyError:
            # Missing placeholder values leave the template unformatted
            pass

    return message


def get_all_message_keys() -> set[str]:
    """Get all available message keys."""
    return set(TRANSLATIONS.keys())


def get_missing_translations(language: str) -> set[str]:
    """Get all message keys that have no translation for a language."""
    return {
        key for key, translations in TRANSLATIONS.items()
        if language not in translations
    }


def validate_translations() -> dict[str, set[str]]:
    """
    Validate that all languages have all translations.

    Returns:
        Mapping of language code to missing keys; empty sets mean complete.
    """
    return {
        language: get_missing_translations(language)
        for language in SUPPORTED_LANGUAGES
    }
