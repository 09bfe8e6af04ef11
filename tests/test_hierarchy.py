"""Tests for hierarchy construction and count aggregation."""

import gc
import random
import unittest

from lineage_hierarchy.core.colors import lineage_color
from lineage_hierarchy.core.hierarchy import (
    build_hierarchy, coerce_node_kind, coerce_observation, mapped_node_kind
)
from lineage_hierarchy.models.errors import HierarchyError
from lineage_hierarchy.models.lineage import NodeKind, Observation, Prevalence

OBSERVATIONS = [
    Observation("B.1.1.7", 40),
    Observation("B.1.1", 5),
    Observation("B.1.617.2", 25, NodeKind.INTERNAL),
    Observation("AY.4", 12),
    Observation("AY.4.2", 8),
    Observation("XBB.1.5", 30),
    Observation("A", 3),
    Observation("BA.2.75", 9, NodeKind.INTERNAL),
]

def all_nodes(forest):
    return [node for node, _, _ in forest.walk()]

class TestScenarios(unittest.TestCase):

    def test_chain_of_observed_lineages(self):
        forest = build_hierarchy([("B", 5, "sample"), ("B.1", 3, "sample"), ("B.1.1", 2, "sample")])
        self.assertEqual(len(forest), 1)
        root = forest[0]
        self.assertEqual((root.name, root.own_count, root.total_count), ("B", 5, 10))
        child = root.children[0]
        self.assertEqual((child.name, child.own_count, child.total_count), ("B.1", 3, 5))
        grandchild = child.children[0]
        self.assertEqual((grandchild.name, grandchild.own_count, grandchild.total_count), ("B.1.1", 2, 2))

    def test_missing_multi_letter_root_is_synthesized(self):
        forest = build_hierarchy([Observation("AY.4", 7)])
        self.assertEqual(len(forest), 1)
        root = forest[0]
        self.assertEqual((root.name, root.own_count, root.total_count), ("AY", 0, 7))
        self.assertTrue(root.synthesized)
        self.assertEqual([child.name for child in root.children], ["AY.4"])
        self.assertEqual((root.children[0].own_count, root.children[0].total_count), (7, 7))
        self.assertFalse(root.children[0].synthesized)

    def test_intermediate_ancestors_are_synthesized(self):
        forest = build_hierarchy([Observation("B.1.1.7", 4)])
        self.assertEqual(forest.node_count, 4)
        for name in ("B", "B.1", "B.1.1"):
            node = forest.find(name)
            self.assertEqual(node.own_count, 0)
            self.assertEqual(node.total_count, 4)
            self.assertEqual(node.color, lineage_color(name))

    def test_empty_input(self):
        forest = build_hierarchy([])
        self.assertEqual(len(forest), 0)
        self.assertEqual(forest.grand_total, 0)
        self.assertEqual(list(forest.walk()), [])

    def test_duplicate_names_are_summed(self):
        forest = build_hierarchy([("B.1", 2), ("B.1", 3)])
        self.assertEqual(forest.find("B.1").own_count, 5)
        self.assertEqual(forest.find("B").total_count, 5)

    def test_empty_names_are_skipped(self):
        forest = build_hierarchy([("", 4), (None, 2), ("B", 1)])
        self.assertEqual(forest.node_count, 1)
        self.assertEqual(forest.grand_total, 1)

    def test_empty_leading_segment_becomes_root(self):
        forest = build_hierarchy([(".1", 3), ("B", 1)])
        names = [node.name for node in all_nodes(forest)]
        self.assertNotIn("", names)
        self.assertNotIn("", forest)
        dotted = forest.find(".1")
        self.assertIsNone(dotted.parent)
        self.assertIn(dotted, forest.roots)
        self.assertEqual(dotted.total_count, 3)
        self.assertEqual(forest.grand_total, 4)

class TestInvariants(unittest.TestCase):

    def setUp(self):
        self.forest = build_hierarchy(OBSERVATIONS)

    def test_total_is_own_plus_children(self):
        for node in all_nodes(self.forest):
            self.assertEqual(node.total_count, node.own_count + sum(c.total_count for c in node.children))
            self.assertGreaterEqual(node.total_count, node.own_count)

    def test_root_total_is_sum_of_subtree_own_counts(self):
        for root in self.forest:
            subtree, stack = [], [root]
            while stack:
                node = stack.pop()
                subtree.append(node)
                stack.extend(node.children)
            self.assertEqual(root.total_count, sum(node.own_count for node in subtree))

    def test_grand_total_covers_every_observation(self):
        self.assertEqual(self.forest.grand_total, sum(obs.count for obs in OBSERVATIONS))

    def test_children_sorted_descending(self):
        for node in all_nodes(self.forest):
            totals = [child.total_count for child in node.children]
            self.assertEqual(totals, sorted(totals, reverse=True))
        roots = [root.total_count for root in self.forest]
        self.assertEqual(roots, sorted(roots, reverse=True))

    def test_ties_keep_insertion_order(self):
        forest = build_hierarchy([("B.1", 1), ("B.3", 5), ("B.2", 5)])
        self.assertEqual([c.name for c in forest.find("B").children], ["B.3", "B.2", "B.1"])

    def test_names_unique_and_parents_linked(self):
        nodes = all_nodes(self.forest)
        names = [node.name for node in nodes]
        self.assertEqual(len(names), len(set(names)))
        self.assertEqual(len(names), self.forest.node_count)
        for node in nodes:
            for child in node.children:
                self.assertIs(child.parent, node)
        for root in self.forest:
            self.assertIsNone(root.parent)

    def test_depth_matches_name(self):
        self.assertEqual(self.forest.find("B.1.617.2").depth, 3)
        self.assertEqual(self.forest.find("XBB").depth, 0)

    def test_parent_reference_is_weak(self):
        forest = build_hierarchy([("B.1", 1)])
        child = forest.find("B.1")
        self.assertIsNotNone(child.parent)
        del forest
        gc.collect()
        self.assertIsNone(child.parent)

class TestSampleInternalCounts(unittest.TestCase):

    def test_kinds_aggregate_separately(self):
        forest = build_hierarchy(OBSERVATIONS)
        b = forest.find("B")
        self.assertEqual(b.sample_count, 45)
        self.assertEqual(b.internal_count, 25)
        self.assertEqual(b.total_taxa, 70)
        ba = forest.find("BA")
        self.assertEqual((ba.sample_count, ba.internal_count), (0, 9))

    def test_untagged_observations_are_samples(self):
        forest = build_hierarchy([("B.1", 4)])
        self.assertEqual(forest.find("B").sample_count, 4)
        self.assertEqual(forest.find("B").internal_count, 0)

    def test_node_types_mapping_overrides_kind(self):
        forest = build_hierarchy([("B.1", 4), ("B.2", 6)], node_types={"B.2": "internal", "B.1": "leaf"})
        b = forest.find("B")
        self.assertEqual((b.sample_count, b.internal_count), (4, 6))

    def test_node_types_mapping_unknown_tag_counts_as_sample(self):
        forest = build_hierarchy([("B.1", 4), ("B.2", 6)], node_types={"B.1": "tip_node", "B.2": "internal"})
        b = forest.find("B")
        self.assertEqual((b.sample_count, b.internal_count), (4, 6))
        self.assertIs(mapped_node_kind("branch"), NodeKind.SAMPLE)
        self.assertIs(mapped_node_kind("INTERNAL"), NodeKind.INTERNAL)

class TestDeterminism(unittest.TestCase):

    def test_order_independent(self):
        shuffled = list(OBSERVATIONS)
        random.Random(7).shuffle(shuffled)
        first = build_hierarchy(OBSERVATIONS)
        second = build_hierarchy(shuffled)

        def summary(forest):
            return {
                node.name: (node.own_count, node.total_count, node.sample_count,
                            node.internal_count, node.color, node.depth)
                for node in all_nodes(forest)
            }

        self.assertEqual(summary(first), summary(second))

class TestPrevalenceColors(unittest.TestCase):

    def test_colors_use_share_of_forest(self):
        forest = build_hierarchy(OBSERVATIONS, color_by_prevalence=True)
        for node in all_nodes(forest):
            expected = lineage_color(node.name, Prevalence(node.total_count, forest.grand_total))
            self.assertEqual(node.color, expected)

    def test_forest_prevalence_lookup(self):
        forest = build_hierarchy([("B.1", 1), ("A", 3)])
        self.assertEqual(forest.prevalence("B"), Prevalence(1, 4))
        self.assertIsNone(forest.prevalence("Q"))

class TestInputValidation(unittest.TestCase):

    def test_negative_count(self):
        with self.assertRaises(HierarchyError):
            build_hierarchy([("B", -1)])

    def test_non_integer_count(self):
        with self.assertRaises(HierarchyError):
            build_hierarchy([("B", 1.5)])
        with self.assertRaises(HierarchyError):
            build_hierarchy([("B", True)])

    def test_integral_float_is_accepted(self):
        self.assertEqual(coerce_observation(("B", 3.0)).count, 3)

    def test_unknown_node_kind(self):
        with self.assertRaises(HierarchyError):
            build_hierarchy([("B", 1, "branch")])

    def test_mapping_records(self):
        obs = coerce_observation({"value": "B.1", "count": 2, "node_kind": "internal"})
        self.assertEqual(obs, Observation("B.1", 2, NodeKind.INTERNAL))

    def test_unsupported_record(self):
        with self.assertRaises(HierarchyError):
            coerce_observation(["B", 1])

    def test_node_kind_aliases(self):
        self.assertIs(coerce_node_kind("leaf"), NodeKind.SAMPLE)
        self.assertIs(coerce_node_kind(" Internal "), NodeKind.INTERNAL)
        self.assertIs(coerce_node_kind(None), NodeKind.SAMPLE)

class TestForestHelpers(unittest.TestCase):

    def test_walk_paths_and_levels(self):
        forest = build_hierarchy([("B.1.1", 1)])
        walked = [(node.name, level, path) for node, level, path in forest.walk()]
        self.assertEqual(walked, [
            ("B", 0, ["B"]),
            ("B.1", 1, ["B", "B.1"]),
            ("B.1.1", 2, ["B", "B.1", "B.1.1"]),
        ])

    def test_to_dataframe(self):
        forest = build_hierarchy([("B.1", 2), ("A", 1)])
        df = forest.to_dataframe()
        self.assertEqual(list(df["name"]), ["B", "A", "B.1"])
        self.assertEqual(df.loc[df["name"] == "B.1", "parent"].item(), "B")
        self.assertEqual(int(df.loc[df["name"] == "B", "total_count"].item()), 2)

    def test_sequence_protocol(self):
        forest = build_hierarchy([("B.1", 2), ("A", 1)])
        self.assertEqual([root.name for root in forest], ["B", "A"])
        self.assertIn("B.1", forest)
        self.assertNotIn("C", forest)
        self.assertEqual([root.name for root in forest.roots], ["B", "A"])

if __name__ == "__main__":
    unittest.main()
