import logging
import math

import numpy as np
import pandas as pd
import pytest

from opa.errors import (
    EmptyPairSet,
    InvalidData,
    InvalidDimension,
    InvalidHypothesis,
    InvalidThreshold,
)
from opa.hypothesis import Hypothesis
from opa.scoring import (
    as_data_matrix,
    condition_pair_pccs,
    count_matches,
    group_pcc,
    hypothesis_ordering,
    row_pcc,
)


def test_row_pcc_perfect_and_reversed_rows():
    assert row_pcc([1, 2, 3], [1, 2, 3]).pcc == 100.0
    reversed_row = row_pcc([3, 2, 1], [1, 2, 3])
    assert reversed_row.pcc == 0.0
    assert reversed_row.incorrect_pairs == 3


def test_row_pcc_counts_correct_pairs():
    record = row_pcc([1, 3, 2], [1, 2, 3])
    assert record.n_pairs == 3
    assert record.correct_pairs == 2
    assert math.isclose(record.pcc, 200.0 / 3.0)


def test_row_pcc_conforms_hypothesis_to_missing_values():
    record = row_pcc([1.0, math.nan, 3.0, 2.0], [1, 2, 3, 4])
    assert record.n_pairs == 3
    assert record.correct_pairs == 2


def test_row_pcc_adjacent_pairing():
    record = row_pcc([1, 3, 2], [1, 2, 3], pairing_type="adjacent")
    assert record.n_pairs == 2
    assert record.pcc == 50.0


def test_row_pcc_threshold_turns_small_differences_into_ties():
    record = row_pcc([1.0, 1.5, 3.0], [1, 2, 3], diff_threshold=1.0)
    assert record.correct_pairs == 2
    tied = row_pcc([1.0, 1.5, 3.0], [1, 1, 3], diff_threshold=1.0)
    assert tied.pcc == 100.0


def test_row_pcc_hypothesis_ignores_data_threshold():
    # Hypothesis values differ by less than the threshold but still predict an increase.
    record = row_pcc([1.0, 5.0], [1.0, 1.1], diff_threshold=2.0)
    assert record.pcc == 100.0


def test_row_pcc_accepts_hypothesis_objects():
    assert row_pcc([1, 2, 3], Hypothesis((1, 2, 3))).pcc == 100.0


def test_row_pcc_rejects_rows_without_pairs():
    with pytest.raises(EmptyPairSet):
        row_pcc([math.nan, 2.0, math.nan], [1, 2, 3])


def test_row_pcc_rejects_length_mismatch_and_bad_inputs():
    with pytest.raises(InvalidDimension):
        row_pcc([1, 2, 3], [1, 2])
    with pytest.raises(InvalidThreshold):
        row_pcc([1, 2, 3], [1, 2, 3], diff_threshold=-1.0)
    with pytest.raises(InvalidHypothesis):
        row_pcc([1, 2, 3], [1, math.inf, 3])


def test_hypothesis_ordering_uses_observed_positions():
    row = np.array([1.0, math.nan, 3.0])
    assert hypothesis_ordering(row, np.array([3.0, 2.0, 1.0]), "pairwise").tolist() == [-1.0]


def test_group_pcc_pools_pairs_across_rows():
    data = np.array([[1, 2, 3], [3, 2, 1], [1, 3, 2]], dtype=float)
    result = group_pcc(data, [1, 2, 3])
    assert result.correct_pairs == 5
    assert result.total_pairs == 9
    assert math.isclose(result.group_pcc, 500.0 / 9.0)
    assert result.individual_pccs[:2] == [100.0, 0.0]
    assert result.excluded_rows == []


def test_group_pcc_accepts_data_frames():
    frame = pd.DataFrame({"a": [1.0, 2.0], "b": [2.0, 1.0]})
    result = group_pcc(frame, [1, 2])
    assert result.group_pcc == 50.0
    assert result.n_conditions == 2


def test_group_pcc_excludes_rows_with_fewer_than_two_values(caplog):
    data = np.array([[1.0, 2.0, 3.0], [math.nan, math.nan, 4.0]])
    with caplog.at_level(logging.WARNING, logger="opa.scoring"):
        result = group_pcc(data, [1, 2, 3])
    assert result.individual_pccs == [100.0, None]
    assert result.excluded_rows == [1]
    assert result.included_rows == [0]
    assert result.total_pairs == 3
    assert result.group_pcc == 100.0
    assert "row 1" in caplog.text


def test_group_pcc_raises_when_no_row_can_be_scored():
    with pytest.raises(EmptyPairSet):
        group_pcc(np.array([[math.nan, 1.0], [2.0, math.nan]]), [1, 2])


def test_group_pcc_rejects_column_mismatch():
    with pytest.raises(InvalidDimension):
        group_pcc(np.ones((2, 3)), [1, 2])


def test_condition_pair_pccs_fill_lower_triangle():
    result = group_pcc(np.array([[1.0, 2.0, 3.0], [3.0, 2.0, 1.0]]), [1, 2, 3])
    out = condition_pair_pccs(result)
    assert out[1, 0] == 50.0
    assert out[2, 0] == 50.0
    assert out[2, 1] == 50.0
    assert np.isnan(out[0, 1])
    assert np.isnan(np.diag(out)).all()


def test_condition_pair_pccs_use_rows_observing_both_conditions():
    result = group_pcc(np.array([[1.0, 2.0, math.nan], [2.0, 1.0, 3.0]]), [1, 2, 3])
    out = condition_pair_pccs(result)
    assert out[1, 0] == 50.0
    assert out[2, 0] == 100.0
    assert out[2, 1] == 100.0


def test_row_pcc_flat_row_matches_flat_hypothesis():
    assert row_pcc([4.0, 4.0, 4.0], [1, 1, 1]).pcc == 100.0
    assert row_pcc([4.0, 4.0, 4.0], [1, 2, 3]).pcc == 0.0


def test_group_pcc_rejects_non_numeric_columns():
    frame = pd.DataFrame({"a": [1.0, 2.0], "b": [2.0, 1.0], "site": ["north", "south"]})
    with pytest.raises(InvalidData, match="numeric"):
        as_data_matrix(frame)
    with pytest.raises(InvalidData):
        group_pcc(frame, [1, 2, 3])


def test_count_matches_scores_each_candidate_row():
    hyp = np.array([1.0, 2.0, 3.0])
    h_ordering = hypothesis_ordering(hyp, hyp, "pairwise")
    candidates = np.array([[1.0, 2.0, 3.0], [3.0, 2.0, 1.0], [1.0, 3.0, 2.0]])
    assert count_matches(candidates, h_ordering, "pairwise", 0.0).tolist() == [3, 0, 2]
    with pytest.raises(EmptyPairSet):
        count_matches(candidates[:, :1], np.array([]), "pairwise", 0.0)
