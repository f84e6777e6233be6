"""Tests for ground-truth scoring."""

import math

import pandas as pd
import pytest

from screen_sim.library import ScreenClass
from screen_sim.metrics import auprc, compute_auprc


def test_perfect_ranking():
    area, precision, recall = auprc([3, 2, 1, 0], ["increasing", "increasing", "inactive", "inactive"],
                                    {"increasing"})
    assert area == pytest.approx(1.0)
    assert recall.max() == 1.0


def test_ascending_ranking():
    area, _, _ = auprc([-3, -2, 1, 0], ["decreasing", "decreasing", "inactive", "inactive"],
                       {"decreasing"}, rev=False)
    assert area == pytest.approx(1.0)


def test_worst_ranking_below_perfect():
    area, _, _ = auprc([0, 1, 2, 3], ["increasing", "increasing", "inactive", "inactive"],
                       {"increasing"})
    assert area < 0.75


def test_enum_classes_accepted():
    area, _, _ = auprc([1.0, 0.0], [ScreenClass.INCREASING, ScreenClass.INACTIVE],
                       {ScreenClass.INCREASING})
    assert area == pytest.approx(1.0)


def test_no_positives_is_nan():
    area, precision, recall = auprc([1.0, 0.0], ["inactive", "inactive"], {"increasing"})
    assert math.isnan(area)
    assert len(precision) == 0


def test_compute_auprc():
    genes = pd.DataFrame({
        "class": ["increasing", "decreasing", "inactive", "inactive"],
        "pvalmeanprod": [4.0, -5.0, 0.1, -0.2],
    })
    scores = compute_auprc(pd.DataFrame(), genes)
    assert scores == {"increasing": pytest.approx(1.0), "decreasing": pytest.approx(1.0)}
