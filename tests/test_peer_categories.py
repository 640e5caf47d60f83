"""
dlnode Peer Category Table Tests

Covers:
  - Every PeerCategory has a table slot and a default policy
  - Total coverage: missing and unknown categories are named exactly
  - Policy fields are validated before coverage
"""

import copy

import pytest

from dlnode.config import DEFAULT_SETTINGS, PeerCategory, PeerCategoryPolicy, PeerCategoryTable
from dlnode.exceptions import (
    MissingCategory,
    MissingField,
    OutOfRangeCount,
    SettingsError,
    TypeMismatch,
    UnknownCategory,
)


@pytest.fixture
def raw_table():
    """A complete table as parsed from TOML."""
    return {
        "standard": {"max_in_connections": 5, "target_out_connections": 10, "max_out_attempts": 10},
        "bootstrap": {"max_in_connections": 1, "target_out_connections": 1, "max_out_attempts": 1},
        "whitelisted": {"max_in_connections": 3, "target_out_connections": 2, "max_out_attempts": 2},
    }


class TestPeerCategory:

    def test_ordinals_are_dense(self):
        assert [int(c) for c in PeerCategory] == list(range(len(PeerCategory)))

    def test_every_category_has_a_default_policy(self):
        defaults = DEFAULT_SETTINGS["network"]["peer_types_config"]
        assert sorted(defaults) == sorted(c.key for c in PeerCategory)
        table = PeerCategoryTable.from_dict(defaults)
        assert len(table) == len(PeerCategory)

    def test_key_round_trip(self):
        for category in PeerCategory:
            assert PeerCategory.from_key(category.key) is category

    @pytest.mark.parametrize("key", ["STANDARD", "WhiteListed", "vip", ""])
    def test_from_key_rejects_non_keys(self, key):
        with pytest.raises(KeyError):
            PeerCategory.from_key(key)


class TestPeerCategoryTable:

    def test_from_dict(self, raw_table):
        table = PeerCategoryTable.from_dict(raw_table)
        assert table[PeerCategory.STANDARD] == PeerCategoryPolicy(5, 10, 10)
        assert table[PeerCategory.BOOTSTRAP].max_in_connections == 1
        assert table[PeerCategory.WHITELISTED].target_out_connections == 2

    def test_lookup_is_total(self, raw_table):
        table = PeerCategoryTable.from_dict(raw_table)
        for category in PeerCategory:
            assert isinstance(table[category], PeerCategoryPolicy)

    def test_iteration_in_category_order(self, raw_table):
        table = PeerCategoryTable.from_dict(raw_table)
        assert [c for c, _ in table] == list(PeerCategory)

    @pytest.mark.parametrize("category", list(PeerCategory))
    def test_missing_category_named_exactly(self, raw_table, category):
        del raw_table[category.key]
        with pytest.raises(MissingCategory) as exc_info:
            PeerCategoryTable.from_dict(raw_table)
        assert exc_info.value.categories == [category.key]

    def test_missing_several_categories(self, raw_table):
        table = {"standard": raw_table["standard"]}
        with pytest.raises(MissingCategory) as exc_info:
            PeerCategoryTable.from_dict(table)
        assert exc_info.value.categories == ["bootstrap", "whitelisted"]

    def test_unknown_category_named_exactly(self, raw_table):
        raw_table["vip"] = copy.deepcopy(raw_table["standard"])
        with pytest.raises(UnknownCategory) as exc_info:
            PeerCategoryTable.from_dict(raw_table)
        assert exc_info.value.keys == ["vip"]

    def test_missing_and_unknown_reported_together(self, raw_table):
        raw_table["trusted"] = raw_table.pop("whitelisted")
        with pytest.raises(SettingsError) as exc_info:
            PeerCategoryTable.from_dict(raw_table)
        kinds = [type(e) for e in exc_info.value.errors]
        assert kinds == [MissingCategory, UnknownCategory]

    def test_policy_errors_reported_before_coverage(self, raw_table):
        del raw_table["whitelisted"]
        raw_table["vip"] = copy.deepcopy(raw_table["bootstrap"])
        raw_table["standard"]["max_in_connections"] = -1
        with pytest.raises(SettingsError) as exc_info:
            PeerCategoryTable.from_dict(raw_table, path="network.peer_types_config")
        errors = exc_info.value.errors
        assert [type(e) for e in errors] == [OutOfRangeCount, MissingCategory, UnknownCategory]
        assert errors[0].path == "network.peer_types_config.standard.max_in_connections"
        assert errors[1].categories == ["whitelisted"]
        assert errors[2].keys == ["vip"]

    def test_invalid_policy_counts_as_present(self, raw_table):
        raw_table["bootstrap"] = 5
        with pytest.raises(TypeMismatch) as exc_info:
            PeerCategoryTable.from_dict(raw_table)
        assert exc_info.value.path == "peer_types_config.bootstrap"

    def test_keys_differing_only_in_case(self, raw_table):
        raw_table["STANDARD"] = {"max_in_connections": 9, "target_out_connections": 9, "max_out_attempts": 9}
        with pytest.raises(UnknownCategory) as exc_info:
            PeerCategoryTable.from_dict(raw_table)
        assert exc_info.value.keys == ["STANDARD"]

    def test_policy_missing_field(self, raw_table):
        del raw_table["bootstrap"]["max_out_attempts"]
        with pytest.raises(MissingField, match="bootstrap.max_out_attempts"):
            PeerCategoryTable.from_dict(raw_table)

    def test_policy_not_a_table(self, raw_table):
        raw_table["standard"] = 5
        with pytest.raises(TypeMismatch):
            PeerCategoryTable.from_dict(raw_table)

    def test_table_not_a_mapping(self):
        with pytest.raises(TypeMismatch):
            PeerCategoryTable.from_dict([1, 2, 3])

    def test_zero_limits_permitted(self, raw_table):
        raw_table["whitelisted"] = {"max_in_connections": 0, "target_out_connections": 0, "max_out_attempts": 0}
        table = PeerCategoryTable.from_dict(raw_table)
        assert table[PeerCategory.WHITELISTED] == PeerCategoryPolicy(0, 0, 0)

    def test_constructor_rejects_partial_mapping(self):
        with pytest.raises(MissingCategory):
            PeerCategoryTable({PeerCategory.STANDARD: PeerCategoryPolicy(1, 1, 1)})

    def test_equality_and_totals(self, raw_table):
        a = PeerCategoryTable.from_dict(raw_table)
        b = PeerCategoryTable.from_dict(copy.deepcopy(raw_table))
        assert a == b
        assert hash(a) == hash(b)
        assert a.total_max_in_connections == 9
        assert a.total_target_out_connections == 13
        assert a.to_dict() == raw_table
