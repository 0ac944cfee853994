import unittest

import numpy as np
import pandas as pd

from alluvial.errors import MalformedAlluvialData, OrderingShapeMismatch
from alluvial.layout import LodeGuidance, compute_lodes, compute_strata
from alluvial.schema import AlluvialSchema
from alluvial.validation.checks import check_lodes


class _Logger:
    def __init__(self):
        self.messages = []

    def info(self, msg):
        self.messages.append(msg)


def _scenario():
    return pd.DataFrame({"axis1": ["A", "A", "B"], "axis2": ["X", "Y", "Y"]})


def _bigger():
    return pd.DataFrame(
        {
            "axis1": ["A", "B", "A", "C", "B", "A", "C", "A", "B", "C", "A", "B"],
            "axis2": ["X", "X", "Y", "Y", "Z", "X", "Z", "Y", "Y", "X", "Z", "Z"],
            "axis3": ["P", "Q", "P", "P", "Q", "Q", "P", "Q", "P", "Q", "P", "P"],
            "axis4": ["K", "K", "L", "M", "L", "K", "M", "L", "K", "L", "M", "M"],
            "fill": ["r", "g", "g", "b", "r", "b", "g", "r", "b", "g", "r", "b"],
            "weight": [1.0, 2.0, 0.5, 3.0, 1.5, 2.5, 1.0, 4.0, 0.25, 2.0, 1.0, 3.5],
        }
    )


def _span(lodes, alluvium, x):
    row = lodes.loc[(lodes["alluvium"] == alluvium) & (lodes["x"] == x)].iloc[0]
    return row["ymin"], row["ymax"]


class ComputeLodesTests(unittest.TestCase):
    def test_two_entities_share_a_stratum(self):
        lodes = compute_lodes(_scenario())

        self.assertEqual(len(lodes), 6)
        self.assertListEqual(lodes["x"].tolist(), [1, 1, 1, 2, 2, 2])
        # A holds entities 1 and 2; entity 2 continues to Y, the lower stratum at axis 2
        self.assertEqual(_span(lodes, 2, 1), (0.0, 1.0))
        self.assertEqual(_span(lodes, 1, 1), (1.0, 2.0))
        self.assertEqual(_span(lodes, 3, 1), (2.0, 3.0))
        self.assertListEqual(lodes["ymin"].tolist(), [1.0, 0.0, 2.0, 2.0, 0.0, 1.0])
        self.assertListEqual(lodes["y"].tolist(), [1.5, 0.5, 2.5, 2.5, 0.5, 1.5])
        self.assertListEqual(lodes["group"].tolist(), [1.0, 2.0, 3.0, 1.0, 2.0, 3.0])

    def test_unordered_strata(self):
        lodes = compute_lodes(_scenario(), decreasing=None)

        self.assertEqual(_span(lodes, 1, 1), (0.0, 1.0))
        self.assertEqual(_span(lodes, 2, 1), (1.0, 2.0))
        self.assertEqual(_span(lodes, 1, 2), (0.0, 1.0))

    def test_explicit_ordering_matrix(self):
        ordering = np.array([[3, 1], [1, 2], [2, 3]])

        lodes = compute_lodes(_scenario(), lode_ordering=ordering)

        self.assertEqual(_span(lodes, 2, 1), (0.0, 1.0))
        self.assertEqual(_span(lodes, 1, 1), (1.0, 2.0))
        self.assertEqual(_span(lodes, 2, 2), (0.0, 1.0))
        self.assertEqual(_span(lodes, 3, 2), (1.0, 2.0))
        self.assertEqual(_span(lodes, 1, 2), (2.0, 3.0))

    def test_ordering_list_with_unconstrained_axis(self):
        lodes = compute_lodes(_scenario(), decreasing=None, lode_ordering=[[2, 1, 3], None])

        self.assertEqual(_span(lodes, 2, 1), (0.0, 1.0))
        self.assertEqual(_span(lodes, 1, 2), (0.0, 1.0))

    def test_ordering_shape_mismatch(self):
        for bad in (np.zeros((2, 2)), [None, None, None], [[1, 2], None]):
            with self.assertRaises(OrderingShapeMismatch):
                compute_lodes(_scenario(), lode_ordering=bad)

    def test_bind_by_aes_sorts_aesthetics_before_other_axes(self):
        df = pd.DataFrame({"axis1": ["A", "A"], "axis2": ["X", "Y"], "fill": ["b", "a"]})

        plain = compute_lodes(df)
        bound = compute_lodes(df, bind_by_aes=True)

        self.assertEqual(_span(plain, 1, 1), (0.0, 1.0))
        self.assertEqual(_span(bound, 2, 1), (0.0, 1.0))
        self.assertIn("fill", bound.columns)

    def test_lodes_form_input(self):
        lodes_in = pd.DataFrame(
            {
                "student": ["s1", "s1", "s2", "s2"],
                "term": [2, 1, 1, 2],
                "major": ["Bio", "Bio", "Math", "Bio"],
            }
        )
        schema = AlluvialSchema(key="term", value="major", id="student")

        out = compute_lodes(lodes_in, schema)

        self.assertListEqual(out["term"].tolist(), [2, 1, 1, 2])
        self.assertListEqual(out["x"].tolist(), [2, 1, 1, 2])
        self.assertListEqual(out["group"].tolist(), [1.0, 1.0, 2.0, 2.0])
        self.assertListEqual(out["weight"].tolist(), [1.0] * 4)
        self.assertListEqual(out["ymax"].tolist(), [1.0, 1.0, 2.0, 2.0])

    def test_partition_for_every_guidance(self):
        df = _bigger()
        strata = compute_strata(df)
        for g in list(LodeGuidance) + [lambda n, i: [i]]:
            for bind in (False, True):
                lodes = compute_lodes(df, lode_guidance=g, bind_by_aes=bind)
                check_lodes(_Logger(), lodes, strata)

    def test_weight_conservation(self):
        df = _bigger()
        lodes = compute_lodes(df)

        per_axis = lodes.groupby("x")["weight"].sum()
        self.assertTrue(np.allclose(per_axis.to_numpy(), df["weight"].sum()))
        self.assertTrue(np.allclose(lodes.groupby("x")["ymax"].max().to_numpy(), df["weight"].sum()))

    def test_deterministic(self):
        first = compute_lodes(_bigger(), lode_guidance="rightleft")
        second = compute_lodes(_bigger(), lode_guidance="rightleft")
        pd.testing.assert_frame_equal(first, second)

    def test_missing_values(self):
        df = pd.DataFrame({"axis1": ["A", "A", None], "axis2": ["X", "Y", "Y"]})

        kept = compute_lodes(df)
        dropped = compute_lodes(df, na_rm=True)

        self.assertIn("NA", kept["stratum"].astype(str).tolist())
        self.assertEqual(len(kept), 6)
        self.assertEqual(len(dropped), 4)
        self.assertNotIn(3, dropped["alluvium"].tolist())

    def test_rejects_unrecognized_tables(self):
        with self.assertRaises(MalformedAlluvialData):
            compute_lodes(pd.DataFrame({"a": [1], "b": [2]}))

    def test_logger_receives_progress(self):
        logger = _Logger()
        compute_lodes(_scenario(), logger=logger)
        self.assertTrue(any("Computed 6 lodes" in m for m in logger.messages))


if __name__ == "__main__":
    unittest.main()
