"""
Property-based tests for the record adapters.
"""

import json
from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from terminal_attribution.domain_matcher import MAX_HIERARCHY_DEPTH
from terminal_attribution.enums import RecordErrorCode
from terminal_attribution.exceptions import RecordError
from terminal_attribution.models import DomainNode, TerminalDomainProfile
from terminal_attribution.queries import terminal_matches_customer
from terminal_attribution.records import (
    customer_profile_from_record,
    domain_node_from_dict,
    parse_domain_hierarchy,
    resolve_main_domain,
    terminal_profile_from_record,
)


blank = st.sampled_from([None, "", "   "])
domain_text = st.text(alphabet="abcdefghijklmnopqrstuvwxyz.0123456789", min_size=1, max_size=20)


def nested_dict(depth: int) -> dict:
    node = {"name": f"n{depth}", "children": []}
    for level in range(depth - 1, 0, -1):
        node = {"name": f"n{level}", "children": [node]}
    return node


class TestMainDomainResolutionProperty:
    """The first non-empty of domain and the legacy field wins."""

    @given(primary=domain_text, legacy=st.one_of(blank, domain_text))
    @settings(max_examples=100)
    def test_primary_field_wins(self, primary, legacy) -> None:
        row = {"domain": primary, "guncelMyPayterDomain": legacy}
        assert resolve_main_domain(row) == primary

    @given(primary=blank, legacy=domain_text)
    @settings(max_examples=100)
    def test_legacy_field_used_when_primary_blank(self, primary, legacy) -> None:
        assert resolve_main_domain({"domain": primary, "guncelMyPayterDomain": legacy}) == legacy
        assert resolve_main_domain({"domain": primary, "guncel_my_payter_domain": legacy}) == legacy

    @given(primary=blank, legacy=blank)
    @settings(max_examples=50)
    def test_no_domain_resolves_to_none(self, primary, legacy) -> None:
        assert resolve_main_domain({"domain": primary, "guncelMyPayterDomain": legacy}) is None

    def test_value_is_stripped(self) -> None:
        assert resolve_main_domain({"domain": "  SIPAY34 "}) == "SIPAY34"


class TestHierarchyParsingProperty:
    """Stored hierarchies parse into DomainNode trees."""

    def test_list_of_nodes(self) -> None:
        value = [
            {"id": "1", "name": "A", "children": [{"id": 2, "name": "B", "children": []}]},
            {"name": "C"},
        ]
        assert parse_domain_hierarchy(value) == [
            DomainNode(name="A", id="1", children=[DomainNode(name="B", id="2")]),
            DomainNode(name="C"),
        ]

    def test_single_root_node(self) -> None:
        assert parse_domain_hierarchy({"name": "A", "children": []}) == [DomainNode(name="A")]

    def test_json_string(self) -> None:
        value = json.dumps([{"name": "TINTCAFE", "children": []}])
        assert parse_domain_hierarchy(value) == [DomainNode(name="TINTCAFE")]

    @pytest.mark.parametrize("value", [None, "", "null", []])
    def test_empty_values(self, value) -> None:
        assert parse_domain_hierarchy(value) == []

    @given(names=st.lists(st.text(max_size=10), max_size=5))
    @settings(max_examples=50)
    def test_round_trip_through_to_dict(self, names) -> None:
        nodes = [DomainNode(name=name, id=str(i)) for i, name in enumerate(names)]
        assert parse_domain_hierarchy([node.to_dict() for node in nodes]) == nodes

    @pytest.mark.parametrize("value", [
        42,
        "{not json",
        [{"name": 5}],
        [{"name": "A", "children": "B"}],
        ["A"],
    ])
    def test_malformed_values_raise(self, value) -> None:
        with pytest.raises(RecordError):
            parse_domain_hierarchy(value)

    def test_depth_limit(self) -> None:
        assert domain_node_from_dict(nested_dict(MAX_HIERARCHY_DEPTH)).name == "n1"
        with pytest.raises(RecordError) as exc_info:
            domain_node_from_dict(nested_dict(MAX_HIERARCHY_DEPTH + 1))
        assert exc_info.value.code == RecordErrorCode.HIERARCHY_TOO_DEEP.value


class TestCustomerRecordProperty:
    """Customer rows in either key style produce the same profile."""

    def test_camel_and_snake_case_agree(self) -> None:
        camel = {
            "id": "c1",
            "cariAdi": "Tint Cafe",
            "guncelMyPayterDomain": "SIPAY34",
            "ignoreMainDomain": True,
            "domainHierarchy": [{"name": "TINTCAFE", "children": []}],
            "subscriptionFee": 1500,
        }
        snake = {
            "id": "c1",
            "cari_adi": "Tint Cafe",
            "guncel_my_payter_domain": "SIPAY34",
            "ignore_main_domain": True,
            "domain_hierarchy": [{"name": "TINTCAFE", "children": []}],
            "subscription_fee": "1500",
        }
        assert customer_profile_from_record(camel) == customer_profile_from_record(snake)

        profile = customer_profile_from_record(camel)
        assert profile.main_domain == "SIPAY34"
        assert profile.ignore_main_domain is True
        assert profile.subscription_fee == Decimal("1500")
        assert profile.label == "c1"

    def test_defaults_for_missing_fields(self) -> None:
        profile = customer_profile_from_record({})
        assert profile.main_domain is None
        assert profile.ignore_main_domain is False
        assert profile.domain_hierarchy == []
        assert profile.subscription_fee is None
        assert profile.label == "<unnamed>"

    def test_legacy_hierarchy_key(self) -> None:
        profile = customer_profile_from_record({
            "domain": "SIPAY34",
            "ignoreMainDomain": True,
            "domainHiyerarsisi": [{"name": "TINTCAFE", "children": []}],
        })
        assert profile.domain_hierarchy == [DomainNode(name="TINTCAFE")]
        assert terminal_matches_customer(TerminalDomainProfile(domain="tintcafe"), profile)

    def test_empty_hierarchy_falls_through_to_next_key(self) -> None:
        profile = customer_profile_from_record({
            "domain_hierarchy": "",
            "domainHiyerarsisi": [{"name": "A"}],
        })
        assert profile.domain_hierarchy == [DomainNode(name="A")]

    @pytest.mark.parametrize("row", [
        None,
        ["domain"],
        {"ignoreMainDomain": "yes"},
        {"subscriptionFee": "ten"},
        {"subscriptionFee": True},
        {"subscriptionFee": "NaN"},
    ])
    def test_malformed_rows_raise(self, row) -> None:
        with pytest.raises(RecordError):
            customer_profile_from_record(row)


class TestTerminalRecordProperty:
    """Terminal rows keep only the fields matching and reporting need."""

    def test_camel_case_row(self) -> None:
        profile = terminal_profile_from_record({
            "id": 7,
            "serialNumber": "PT-001",
            "domain": "shop.acme.com",
            "terminalModel": "P68",
            "firmware": "1.2.3",
        })
        assert profile.id == "7"
        assert profile.serial_number == "PT-001"
        assert profile.domain == "shop.acme.com"
        assert profile.terminal_model == "P68"

    def test_serial_and_model_fallbacks(self) -> None:
        profile = terminal_profile_from_record({
            "domain": "x",
            "serial_number": "",
            "barcode": "PX123",
            "product_code": "PC999",
            "model": "P68",
        })
        assert profile.serial_number == "PX123"
        assert profile.terminal_model == "P68"
        assert terminal_profile_from_record({"product_code": "PC999"}).serial_number == "PC999"

    def test_non_string_domain_is_absent(self) -> None:
        assert terminal_profile_from_record({"domain": 12}).domain is None
        assert terminal_profile_from_record({}).domain is None

    def test_non_mapping_raises(self) -> None:
        with pytest.raises(RecordError) as exc_info:
            terminal_profile_from_record("acme.com")
        assert exc_info.value.code == RecordErrorCode.NOT_A_MAPPING.value
