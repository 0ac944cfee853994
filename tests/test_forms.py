import unittest

import numpy as np
import pandas as pd

from alluvial.errors import (
    AmbiguousDistillation,
    InconsistentAxisSet,
    MalformedAlluvialData,
)
from alluvial.forms import (
    AlluvialForm,
    as_alluvial_table,
    detect_form,
    get_axes,
    is_alluvia_form,
    is_lodes_form,
    to_alluvia,
    to_lodes,
)
from alluvial.schema import AlluvialSchema


class _Logger:
    def __init__(self):
        self.messages = []

    def info(self, msg):
        self.messages.append(msg)


def _semester_lodes():
    return pd.DataFrame(
        {
            "id": [1, 1, 1, 2, 2, 2],
            "semester": [1, 2, 3, 1, 2, 3],
            "curriculum": ["Bio", "Bio", "Chem", "Math", "Math", "Math"],
        }
    )


LODES_SCHEMA = AlluvialSchema(key="semester", value="curriculum", id="id")


class DetectTests(unittest.TestCase):
    def test_get_axes_orders_by_numeric_suffix(self):
        cols = ["axis10", "axis2", "x", "axis1", "axis", "taxis3"]
        self.assertListEqual(get_axes(cols), ["axis1", "axis2", "axis10", "axis"])

    def test_lodes_table_is_detected(self):
        self.assertIs(detect_form(_semester_lodes(), LODES_SCHEMA), AlluvialForm.LODES)

    def test_wide_table_is_detected_with_explicit_axes(self):
        wide = pd.DataFrame(
            {
                "id": [1, 2],
                "sem1": ["Bio", "Math"],
                "sem2": ["Bio", "Math"],
                "sem3": ["Chem", "Math"],
            }
        )
        schema = AlluvialSchema(id="id", axes=("sem1", "sem2", "sem3"))
        self.assertIs(detect_form(wide, schema), AlluvialForm.ALLUVIA)

    def test_wide_table_is_detected_by_axis_names(self):
        wide = pd.DataFrame({"axis1": ["A", "B"], "axis2": ["X", "Y"], "fill": [1, 2]})
        self.assertIs(detect_form(wide), AlluvialForm.ALLUVIA)

    def test_partial_axis_coverage_is_none(self):
        lodes = _semester_lodes().iloc[:-1]
        logger = _Logger()

        self.assertIs(detect_form(lodes, LODES_SCHEMA, logger=logger), AlluvialForm.NONE)
        self.assertTrue(any("same set of axes" in m for m in logger.messages))
        with self.assertRaises(InconsistentAxisSet):
            as_alluvial_table(lodes, LODES_SCHEMA)

    def test_single_axis_is_not_alluvial(self):
        wide = pd.DataFrame({"axis1": ["A", "B"], "fill": [1, 2]})
        self.assertFalse(is_alluvia_form(wide))
        with self.assertRaises(MalformedAlluvialData):
            as_alluvial_table(wide)

    def test_duplicate_ids_fail_alluvia_check(self):
        wide = pd.DataFrame({"id": [1, 1], "axis1": ["A", "B"], "axis2": ["X", "Y"]})
        self.assertFalse(is_alluvia_form(wide, id="id"))
        self.assertTrue(is_alluvia_form(wide))

    def test_duplicate_pairs_need_allow_duplicates(self):
        lodes = pd.concat([_semester_lodes(), _semester_lodes().iloc[[0]]], ignore_index=True)
        args = ("semester", "curriculum", "id")

        self.assertFalse(is_lodes_form(lodes, *args))
        self.assertTrue(is_lodes_form(lodes, *args, allow_duplicates=True))

    def test_duplicate_rows_without_id_are_not_alluvia(self):
        wide = pd.DataFrame({"axis1": ["A", "A"], "axis2": ["X", "X"]})
        logger = _Logger()

        self.assertIs(detect_form(wide, logger=logger), AlluvialForm.NONE)
        self.assertTrue(any("rows must be unique" in m for m in logger.messages))
        self.assertIs(detect_form(wide.assign(alluvium=[1, 2])), AlluvialForm.ALLUVIA)
        with self.assertRaises(MalformedAlluvialData):
            as_alluvial_table(wide)

    def test_single_axis_lodes_are_rejected(self):
        lodes = pd.DataFrame({"alluvium": [1, 2], "x": [1, 1], "stratum": ["A", "B"]})
        logger = _Logger()

        self.assertFalse(is_lodes_form(lodes, logger=logger))
        self.assertTrue(any("need at least 2" in m for m in logger.messages))
        with self.assertRaises(MalformedAlluvialData):
            as_alluvial_table(lodes)

    def test_negative_weights_are_rejected(self):
        wide = pd.DataFrame({"axis1": ["A", "B"], "axis2": ["X", "Y"], "weight": [1.0, -2.0]})
        self.assertFalse(is_alluvia_form(wide, weight="weight"))

    def test_alluvial_table_keeps_axes(self):
        table = as_alluvial_table(_semester_lodes(), LODES_SCHEMA)
        self.assertIs(table.form, AlluvialForm.LODES)
        self.assertListEqual(table.axes, [1, 2, 3])


class ToLodesTests(unittest.TestCase):
    def setUp(self):
        self.wide = pd.DataFrame(
            {
                "axis1": ["A", "A", "B"],
                "axis2": ["X", "Y", "Y"],
                "weight": [1.0, 2.0, 3.0],
            }
        )

    def test_rows_are_axis_major(self):
        lodes = to_lodes(self.wide)

        self.assertEqual(len(lodes), 6)
        self.assertListEqual(lodes["x"].astype(str).tolist(), ["axis1"] * 3 + ["axis2"] * 3)
        self.assertListEqual(lodes["stratum"].astype(str).tolist(), ["A", "A", "B", "X", "Y", "Y"])
        self.assertListEqual(lodes["alluvium"].tolist(), [1, 2, 3, 1, 2, 3])
        self.assertListEqual(lodes["weight"].tolist(), [1.0, 2.0, 3.0, 1.0, 2.0, 3.0])
        self.assertListEqual(list(lodes["stratum"].cat.categories), ["A", "B", "X", "Y"])

    def test_strata_categories_follow_first_appearance(self):
        wide = pd.DataFrame({"axis1": ["B", "A"], "axis2": ["Y", "X"]})
        lodes = to_lodes(wide)
        self.assertListEqual(list(lodes["stratum"].cat.categories), ["B", "A", "Y", "X"])

    def test_declared_categories_are_kept(self):
        wide = pd.DataFrame(
            {
                "axis1": pd.Categorical(["B", "A"], categories=["A", "B", "C"]),
                "axis2": ["Y", "X"],
            }
        )
        lodes = to_lodes(wide)
        self.assertListEqual(list(lodes["stratum"].cat.categories), ["A", "B", "C", "Y", "X"])

    def test_existing_id_is_reused(self):
        wide = self.wide.assign(alluvium=[10, 20, 30])
        lodes = to_lodes(wide)
        self.assertListEqual(lodes["alluvium"].tolist(), [10, 20, 30] * 2)

    def test_keep_copies_axis_values_to_every_lode(self):
        lodes = to_lodes(self.wide, keep=["axis1"])
        self.assertListEqual(lodes["axis1"].tolist(), ["A", "A", "B"] * 2)

    def test_custom_names_and_axes(self):
        wide = pd.DataFrame({"who": ["p", "q"], "fall": ["A", "B"], "spring": ["B", "B"]})
        lodes = to_lodes(wide, key="term", value="major", id="who", axes=["fall", "spring"])

        self.assertListEqual(list(lodes.columns), ["who", "term", "major"])
        self.assertListEqual(lodes["term"].astype(str).tolist(), ["fall", "fall", "spring", "spring"])

    def test_rejects_non_alluvia(self):
        with self.assertRaises(MalformedAlluvialData):
            to_lodes(self.wide[["axis1", "weight"]])

    def test_input_is_not_mutated(self):
        before = self.wide.copy()
        to_lodes(self.wide)
        pd.testing.assert_frame_equal(self.wide, before)


class ToAlluviaTests(unittest.TestCase):
    def test_round_trip(self):
        wide = pd.DataFrame(
            {
                "alluvium": [1, 2, 3, 4],
                "weight": [1.5, 2.0, 3.0, 0.5],
                "axis1": pd.Categorical(["A", "A", "B", "B"]),
                "axis2": pd.Categorical(["X", "Y", "Y", "X"]),
                "axis3": pd.Categorical(["P", "P", "Q", "Q"]),
            }
        )

        back = to_alluvia(to_lodes(wide))

        pd.testing.assert_frame_equal(back[wide.columns], wide)

    def test_axes_get_their_own_categories(self):
        wide = pd.DataFrame({"axis1": ["A", "A", "B"], "axis2": ["X", "Y", "Y"]})

        back = to_alluvia(to_lodes(wide))

        self.assertListEqual(list(back["axis1"].cat.categories), ["A", "B"])
        self.assertListEqual(list(back["axis2"].cat.categories), ["X", "Y"])
        for a in ["axis1", "axis2"]:
            self.assertListEqual(back[a].astype(object).tolist(), wide[a].tolist())

    def test_pivot_columns_follow_axis_order(self):
        out = to_alluvia(_semester_lodes(), key="semester", value="curriculum", id="id")

        self.assertListEqual(list(out.columns), ["id", 1, 2, 3])
        self.assertListEqual(out[3].tolist(), ["Chem", "Math"])

    def test_conflicting_covariate_without_policy_raises(self):
        lodes = _semester_lodes().assign(advisor=["Kim", "Kim", "Lee", "Ode", "Ode", "Ode"])

        with self.assertRaises(AmbiguousDistillation) as ctx:
            to_alluvia(lodes, key="semester", value="curriculum", id="id")
        self.assertEqual(ctx.exception.column, "advisor")

    def test_distill_policies(self):
        lodes = _semester_lodes().assign(advisor=["Kim", "Lee", "Lee", "Ode", "Ode", "Ode"])
        kw = dict(key="semester", value="curriculum", id="id")

        most = to_alluvia(lodes, distill="most", **kw)
        first = to_alluvia(lodes, distill="first", **kw)
        last = to_alluvia(lodes, distill="last", **kw)
        custom = to_alluvia(lodes, distill=lambda s: "/".join(sorted(set(s))), **kw)

        self.assertListEqual(most["advisor"].tolist(), ["Lee", "Ode"])
        self.assertListEqual(first["advisor"].tolist(), ["Kim", "Ode"])
        self.assertListEqual(last["advisor"].tolist(), ["Lee", "Ode"])
        self.assertListEqual(custom["advisor"].tolist(), ["Kim/Lee", "Ode"])

    def test_duplicate_lodes_are_distilled(self):
        lodes = pd.concat(
            [
                _semester_lodes(),
                pd.DataFrame({"id": [1], "semester": [1], "curriculum": ["Art"]}),
            ],
            ignore_index=True,
        )
        kw = dict(key="semester", value="curriculum", id="id")

        with self.assertRaises(AmbiguousDistillation):
            to_alluvia(lodes, **kw)
        self.assertEqual(to_alluvia(lodes, distill="last", **kw).loc[0, 1], "Art")

    def test_inconsistent_axes_raise(self):
        with self.assertRaises(InconsistentAxisSet):
            to_alluvia(_semester_lodes().iloc[1:], key="semester", value="curriculum", id="id")

    def test_missing_columns_raise(self):
        with self.assertRaises(MalformedAlluvialData):
            to_alluvia(_semester_lodes(), key="term", value="curriculum", id="id")


if __name__ == "__main__":
    unittest.main()
