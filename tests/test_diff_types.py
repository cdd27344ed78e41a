"""Tests for the diff value model."""

import pytest

from cfn_diff.diff import (
    Difference,
    DifferenceCollection,
    PropertyDifference,
    ResourceDifference,
    ResourceImpact,
    deep_equal,
    worst_impact,
)
from cfn_diff.errors import EmptyDifferenceError, ResourceTypeChangedError, UnknownLogicalIdError


class TestDeepEqual:
    """Test CloudFormation value equivalence."""

    def test_string_number_equivalence(self):
        assert deep_equal("10", 10)
        assert deep_equal(1.0, 1)
        assert not deep_equal("10", 11)

    def test_string_bool_equivalence(self):
        assert deep_equal("true", True)
        assert deep_equal(False, "false")
        assert not deep_equal("True", True)
        assert not deep_equal(1, True)

    def test_nested(self):
        assert deep_equal({"a": [1, {"b": "2"}]}, {"a": ["1", {"b": 2}]})
        assert not deep_equal({"a": [1]}, {"a": [1, 2]})
        assert not deep_equal({"a": 1}, {"b": 1})

    def test_depends_on_unordered(self):
        assert deep_equal({"DependsOn": ["A", "B"]}, {"DependsOn": ["B", "A"]})
        assert deep_equal({"DependsOn": "A"}, {"DependsOn": ["A"]})
        assert not deep_equal({"DependsOn": ["A"]}, {"DependsOn": ["A", "B"]})

    def test_none(self):
        assert deep_equal(None, None)
        assert not deep_equal(None, "x")


class TestDifference:
    """Test the basic Difference type."""

    def test_both_absent_rejected(self):
        with pytest.raises(EmptyDifferenceError):
            Difference(None, None)

    def test_classification(self):
        assert Difference(None, 1).is_addition
        assert Difference(1, None).is_removal
        update = Difference(1, 2)
        assert update.is_update and update.is_different

    def test_equivalent_values_not_different(self):
        assert not Difference("5", 5).is_different

    def test_values_read_only(self):
        diff = Difference("a", "b")
        with pytest.raises(AttributeError):
            diff.old_value = "c"


class TestImpactOrder:
    """Test the total order of impacts."""

    def test_rank(self):
        order = [
            ResourceImpact.WILL_UPDATE,
            ResourceImpact.WILL_CREATE,
            ResourceImpact.WILL_ORPHAN,
            ResourceImpact.MAY_REPLACE,
            ResourceImpact.WILL_REPLACE,
            ResourceImpact.WILL_DESTROY,
        ]
        ranks = [impact.badness for impact in order]
        assert ranks == sorted(ranks) and len(set(ranks)) == len(ranks)
        assert ResourceImpact.NO_CHANGE.badness == ResourceImpact.WILL_IMPORT.badness == 0

    def test_worst_impact(self):
        assert worst_impact(ResourceImpact.WILL_UPDATE, ResourceImpact.MAY_REPLACE) == ResourceImpact.MAY_REPLACE
        assert worst_impact(ResourceImpact.WILL_DESTROY, ResourceImpact.WILL_REPLACE) == ResourceImpact.WILL_DESTROY
        assert worst_impact(ResourceImpact.WILL_UPDATE, None) == ResourceImpact.WILL_UPDATE

    def test_worst_impact_tie_takes_second(self):
        assert worst_impact(ResourceImpact.NO_CHANGE, ResourceImpact.WILL_IMPORT) == ResourceImpact.WILL_IMPORT
        assert worst_impact(ResourceImpact.WILL_IMPORT, ResourceImpact.NO_CHANGE) == ResourceImpact.NO_CHANGE


class TestDifferenceCollection:
    """Test collections of differences."""

    def _collection(self):
        # Insertion order deliberately puts the update first
        return DifferenceCollection({
            "Updated": Difference("a", "b"),
            "Same": Difference("x", "x"),
            "Added": Difference(None, "n"),
            "Removed": Difference("o", None),
        })

    def test_changes_only(self):
        collection = self._collection()
        assert set(collection.changes) == {"Updated", "Added", "Removed"}
        assert collection.difference_count == 3
        assert "Same" not in collection.logical_ids

    def test_for_each_order(self):
        """Removals, then additions, then updates."""
        visited = []
        self._collection().for_each_difference(lambda logical_id, _: visited.append(logical_id))
        assert visited == ["Removed", "Added", "Updated"]

    def test_get_unknown(self):
        with pytest.raises(UnknownLogicalIdError) as exc_info:
            self._collection().get("Nope")
        assert "No object with logical ID 'Nope'" in str(exc_info.value)

    def test_get_and_remove(self):
        collection = self._collection()
        assert collection.get("Added").new_value == "n"
        collection.remove("Added")
        assert "Added" not in collection.logical_ids
        with pytest.raises(UnknownLogicalIdError):
            collection.get("Added")

    def test_filter(self):
        filtered = self._collection().filter(lambda d: d.is_update)
        assert filtered.logical_ids == ["Updated"]


class TestResourceDifference:
    """Test per-resource impact classification."""

    def test_created(self):
        diff = ResourceDifference(None, {"Type": "T"}, old_type=None, new_type="T")
        assert diff.change_impact == ResourceImpact.WILL_CREATE
        assert diff.is_addition and diff.is_different

    def test_destroyed(self):
        diff = ResourceDifference({"Type": "T"}, None, old_type="T", new_type=None)
        assert diff.change_impact == ResourceImpact.WILL_DESTROY

    def test_orphaned_with_retain(self):
        diff = ResourceDifference({"Type": "T", "DeletionPolicy": "Retain"}, None, old_type="T", new_type=None)
        assert diff.change_impact == ResourceImpact.WILL_ORPHAN

    def test_type_change_replaces(self):
        diff = ResourceDifference({"Type": "A"}, {"Type": "B"}, old_type="A", new_type="B")
        assert diff.change_impact == ResourceImpact.WILL_REPLACE
        assert diff.resource_type_changed
        with pytest.raises(ResourceTypeChangedError):
            diff.resource_type

    def test_import_short_circuits(self):
        diff = ResourceDifference(None, {"Type": "T"}, old_type=None, new_type="T")
        diff.is_import = True
        assert diff.change_impact == ResourceImpact.WILL_IMPORT

    def test_worst_property_wins(self):
        diff = ResourceDifference(
            {"Type": "T"}, {"Type": "T"}, old_type="T", new_type="T",
            property_diffs={
                "A": PropertyDifference(1, 2, change_impact=ResourceImpact.WILL_UPDATE),
                "B": PropertyDifference(1, 2, change_impact=ResourceImpact.MAY_REPLACE),
            },
        )
        assert diff.change_impact == ResourceImpact.MAY_REPLACE

    def test_other_change_updates(self):
        diff = ResourceDifference(
            {"Type": "T"}, {"Type": "T"}, old_type="T", new_type="T",
            other_diffs={"DeletionPolicy": Difference(None, "Retain")},
        )
        assert diff.change_impact == ResourceImpact.WILL_UPDATE
        assert diff.is_update

    def test_no_change(self):
        diff = ResourceDifference(
            {"Type": "T"}, {"Type": "T"}, old_type="T", new_type="T",
            property_diffs={"A": PropertyDifference(1, 1, change_impact=ResourceImpact.NO_CHANGE)},
        )
        assert diff.change_impact == ResourceImpact.NO_CHANGE
        assert not diff.is_different

    def test_set_property_change_keeps_values(self):
        """Only the interpretation changes after construction."""
        old, new = {"Type": "T", "Properties": {"A": 1}}, {"Type": "T", "Properties": {"A": 2}}
        diff = ResourceDifference(
            old, new, old_type="T", new_type="T",
            property_diffs={"A": PropertyDifference(1, 2, change_impact=ResourceImpact.WILL_UPDATE)},
        )
        diff.set_property_change("A", PropertyDifference(1, 2, change_impact=ResourceImpact.WILL_REPLACE))
        assert diff.change_impact == ResourceImpact.WILL_REPLACE
        assert diff.old_value is old and diff.new_value is new

    def test_for_each_difference_sorted(self):
        diff = ResourceDifference(
            {"Type": "T"}, {"Type": "T"}, old_type="T", new_type="T",
            property_diffs={
                "Zeta": PropertyDifference(1, 2, change_impact=ResourceImpact.WILL_UPDATE),
                "Alpha": PropertyDifference(1, 2, change_impact=ResourceImpact.WILL_UPDATE),
            },
            other_diffs={"Condition": Difference("a", "b")},
        )
        seen = []
        diff.for_each_difference(lambda kind, name, _: seen.append((kind, name)))
        assert seen == [("Property", "Alpha"), ("Property", "Zeta"), ("Other", "Condition")]
