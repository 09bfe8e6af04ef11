"""Tests for configuration and the command-line entry point."""

import argparse
import io
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import patch

import pandas as pd

from lineage_hierarchy.cli import create_parser, main
from lineage_hierarchy.core.utils import DEFAULT_LINEAGE_COLUMN, LINEAGE_COLUMN_ENV
from lineage_hierarchy.models.config import ConfigError, LineageConfig

METADATA_TSV = (
    "node_id\tpangolin_lineage\tis_tip\tx_time\n"
    "1\tB.1.1.7\ttrue\t1600000000\n"
    "2\tB.1.1.7\ttrue\t1600100000\n"
    "3\tB.1\tfalse\t1600200000\n"
    "4\tAY.4\ttrue\t1600300000\n"
    "5\tAY.4.2\ttrue\t1600400000\n"
)

class CliTestCase(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.dir = Path(self.temp_dir.name)
        self.metadata = self.dir / "tree.metadata.tsv"
        self.metadata.write_text(METADATA_TSV)

    def tearDown(self):
        self.temp_dir.cleanup()

    def run_main(self, argv):
        out = io.StringIO()
        with redirect_stdout(out):
            code = main(argv)
        return code, out.getvalue()

class TestLineageConfig(CliTestCase):

    def test_build_defaults(self):
        args = create_parser().parse_args(["build", str(self.metadata)])
        with patch.dict(os.environ, {}, clear=True):
            config = LineageConfig(args)
        self.assertEqual(config.column, DEFAULT_LINEAGE_COLUMN)
        self.assertEqual(config.output_basename, "tree")
        self.assertEqual(config.output_prefix, Path("./results") / "tree")
        self.assertFalse(config.prevalence_colors)

    def test_column_from_environment(self):
        args = create_parser().parse_args(["build", str(self.metadata)])
        with patch.dict(os.environ, {LINEAGE_COLUMN_ENV: "lineage"}):
            config = LineageConfig(args)
        self.assertEqual(config.column, "lineage")

    def test_missing_metadata(self):
        args = create_parser().parse_args(["build", str(self.dir / "absent.tsv")])
        with self.assertRaises(ConfigError):
            LineageConfig(args)

    def test_timeline_validation(self):
        args = create_parser().parse_args(["timeline", str(self.metadata), "--buckets", "0"])
        with self.assertRaises(ConfigError):
            LineageConfig(args)

    def test_parse_and_color_sections(self):
        parse_config = LineageConfig(create_parser().parse_args(["parse", "B.1", "--broad"]))
        self.assertEqual(parse_config.names, ["B.1"])
        self.assertFalse(parse_config.strict)
        self.assertFalse(hasattr(parse_config, "hex"))

        color_config = LineageConfig(create_parser().parse_args(["color", "B.1", "--hex"]))
        self.assertTrue(color_config.hex)
        self.assertFalse(hasattr(color_config, "strict"))

    def test_relate_requires_both_names(self):
        with self.assertRaises(ConfigError):
            LineageConfig(argparse.Namespace(command="relate", lineage="B", reference=""))

class TestMain(CliTestCase):

    def test_parse(self):
        code, out = self.run_main(["parse", "XBB.1.5", "B.1.1.7"])
        self.assertEqual(code, 0)
        self.assertIn("XBB.1", out)
        self.assertIn("recombinant", out)

    def test_relate(self):
        code, out = self.run_main(["relate", "AY", "AY.4.2"])
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "ancestor")
        _, out = self.run_main(["relate", "AY.4.2", "AY"])
        self.assertEqual(out.strip(), "descendant")

    def test_color(self):
        code, out = self.run_main(["color", "B", "--hex"])
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "B\t#2828c8")

    def test_build(self):
        out_dir = self.dir / "out"
        code, _ = self.run_main([
            "build", str(self.metadata), "--node-type-column", "is_tip",
            "--output-dir", str(out_dir), "--prevalence-colors",
        ])
        self.assertEqual(code, 0)
        df = pd.read_csv(out_dir / "tree_lineage-hierarchy.tsv", sep="\t")
        b = df.loc[df["name"] == "B"].iloc[0]
        self.assertEqual((b["total_count"], b["sample_count"], b["internal_count"]), (3, 2, 1))
        self.assertEqual(df["name"].iloc[0], "B")

    def test_build_with_node_type_file(self):
        types = self.dir / "types.tsv"
        types.write_text("B.1.1.7\tinternal\n")
        out_dir = self.dir / "out"
        code, _ = self.run_main([
            "build", str(self.metadata), "--node-types", str(types),
            "--output-dir", str(out_dir), "--output-basename", "typed",
        ])
        self.assertEqual(code, 0)
        df = pd.read_csv(out_dir / "typed_lineage-hierarchy.tsv", sep="\t")
        b = df.loc[df["name"] == "B"].iloc[0]
        self.assertEqual((b["sample_count"], b["internal_count"]), (1, 2))

    def test_timeline(self):
        out_dir = self.dir / "out"
        code, _ = self.run_main([
            "timeline", str(self.metadata), "--buckets", "2", "--output-dir", str(out_dir),
        ])
        self.assertEqual(code, 0)
        df = pd.read_csv(out_dir / "tree_lineage-timeline.tsv", sep="\t")
        self.assertEqual(list(df.columns), ["time", "time_label", "B", "AY"])
        self.assertEqual(len(df), 2)

    def test_missing_column_fails(self):
        code, _ = self.run_main(["build", str(self.metadata), "--column", "lineage",
                                 "--output-dir", str(self.dir / "out")])
        self.assertEqual(code, 1)

    def test_missing_file_fails(self):
        code, _ = self.run_main(["build", str(self.dir / "absent.tsv")])
        self.assertEqual(code, 1)

if __name__ == "__main__":
    unittest.main()
