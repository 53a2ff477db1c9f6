"""
Adapters from stored customer/product rows to matching profiles.

Rows come from the dashboard database either as exported camelCase objects
or as snake_case table rows. Main domain resolution happens here, before
the matching engine is called: the first non-empty of ``domain`` and the
legacy ``guncelMyPayterDomain`` wins. Older rows keep the hierarchy under
``domainHiyerarsisi`` and product serials under ``barcode`` or
``product_code``.
"""

import json
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from .domain_matcher import MAX_HIERARCHY_DEPTH
from .enums import RecordErrorCode
from .exceptions import RecordError
from .models import CustomerDomainProfile, DomainNode, TerminalDomainProfile


MAIN_DOMAIN_KEYS = ("domain", "guncelMyPayterDomain", "guncel_my_payter_domain")


def _first(row: Mapping[str, Any], *keys: str) -> Any:
    """Return the value of the first key that is present and not None or ""."""
    for key in keys:
        value = row.get(key)
        if value is not None and value != "":
            return value
    return None


def _optional_str(row: Mapping[str, Any], *keys: str) -> Optional[str]:
    value = _first(row, *keys)
    if value is None:
        return None
    return str(value)


def _ensure_mapping(row: Any, kind: str) -> Mapping[str, Any]:
    if not isinstance(row, Mapping):
        raise RecordError(
            code=RecordErrorCode.NOT_A_MAPPING.value,
            message=f"{kind} record must be an object, got {type(row).__name__}",
            details={"kind": kind},
        )
    return row


def resolve_main_domain(row: Mapping[str, Any]) -> Optional[str]:
    """Return the first non-empty main domain field, stripped, or None."""
    for key in MAIN_DOMAIN_KEYS:
        value = row.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def domain_node_from_dict(data: Any, depth: int = 1) -> DomainNode:
    """
    Build a DomainNode tree from its stored JSON form.

    Args:
        data: Mapping with "name", optional "id" and "children"
        depth: Nesting level of this node (top level is 1)

    Raises:
        RecordError: On a malformed node or nesting beyond MAX_HIERARCHY_DEPTH
    """
    if depth > MAX_HIERARCHY_DEPTH:
        raise RecordError(
            code=RecordErrorCode.HIERARCHY_TOO_DEEP.value,
            message=f"Domain hierarchy is nested deeper than {MAX_HIERARCHY_DEPTH} levels",
            details={"max_depth": MAX_HIERARCHY_DEPTH},
        )

    node = _ensure_mapping(data, "domain node")

    name = node.get("name")
    if name is None:
        name = ""
    if not isinstance(name, str):
        raise RecordError(
            code=RecordErrorCode.INVALID_FIELD.value,
            message="Domain node name must be a string",
            details={"field": "name", "value": repr(name)},
        )

    children = node.get("children")
    if children is None:
        children = []
    if not isinstance(children, list):
        raise RecordError(
            code=RecordErrorCode.INVALID_FIELD.value,
            message="Domain node children must be a list",
            details={"field": "children", "node": name},
        )

    node_id = node.get("id")
    return DomainNode(
        name=name,
        children=[domain_node_from_dict(child, depth + 1) for child in children],
        id=str(node_id) if node_id is not None else None,
    )


def parse_domain_hierarchy(value: Any) -> list[DomainNode]:
    """
    Parse a stored domain hierarchy.

    Accepts a list of nodes, a single root node, a JSON string of either,
    or None (no hierarchy).
    """
    if value is None or value == "":
        return []

    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise RecordError(
                code=RecordErrorCode.INVALID_FIELD.value,
                message=f"Domain hierarchy is not valid JSON: {e}",
                details={"field": "domain_hierarchy"},
            )
        if value is None:
            return []

    if isinstance(value, Mapping):
        return [domain_node_from_dict(value)]

    if isinstance(value, list):
        return [domain_node_from_dict(item) for item in value]

    raise RecordError(
        code=RecordErrorCode.INVALID_FIELD.value,
        message="Domain hierarchy must be a list of nodes",
        details={"field": "domain_hierarchy", "type": type(value).__name__},
    )


def _parse_flag(value: Any, field_name: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise RecordError(
        code=RecordErrorCode.INVALID_FIELD.value,
        message=f"{field_name} must be a boolean",
        details={"field": field_name, "value": repr(value)},
    )


def _parse_fee(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise RecordError(
            code=RecordErrorCode.INVALID_FIELD.value,
            message="subscription_fee must be a number",
            details={"field": "subscription_fee", "value": repr(value)},
        )
    try:
        fee = Decimal(str(value))
    except InvalidOperation:
        raise RecordError(
            code=RecordErrorCode.INVALID_FIELD.value,
            message="subscription_fee must be a number",
            details={"field": "subscription_fee", "value": repr(value)},
        )
    if not fee.is_finite():
        raise RecordError(
            code=RecordErrorCode.INVALID_FIELD.value,
            message="subscription_fee must be finite",
            details={"field": "subscription_fee", "value": repr(value)},
        )
    return fee


def customer_profile_from_record(row: Any) -> CustomerDomainProfile:
    """
    Build a CustomerDomainProfile from a customer row.

    Raises:
        RecordError: If the row or one of its matching fields is malformed
    """
    row = _ensure_mapping(row, "customer")
    return CustomerDomainProfile(
        main_domain=resolve_main_domain(row),
        ignore_main_domain=_parse_flag(
            _first(row, "ignoreMainDomain", "ignore_main_domain"),
            "ignore_main_domain",
        ),
        domain_hierarchy=parse_domain_hierarchy(
            _first(row, "domainHierarchy", "domain_hierarchy", "domainHiyerarsisi")
        ),
        id=_optional_str(row, "id"),
        name=_optional_str(row, "cariAdi", "cari_adi", "name"),
        subscription_fee=_parse_fee(
            _first(row, "subscriptionFee", "subscription_fee")
        ),
    )


def terminal_profile_from_record(row: Any) -> TerminalDomainProfile:
    """
    Build a TerminalDomainProfile from a product row.

    Raises:
        RecordError: If the row is not a mapping
    """
    row = _ensure_mapping(row, "terminal")
    domain = row.get("domain")
    return TerminalDomainProfile(
        domain=domain if isinstance(domain, str) else None,
        id=_optional_str(row, "id"),
        serial_number=_optional_str(row, "serialNumber", "serial_number", "barcode", "product_code"),
        terminal_model=_optional_str(row, "terminalModel", "terminal_model", "model"),
    )
