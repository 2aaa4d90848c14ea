import math

import numpy as np
import pytest

from opa.errors import InvalidHypothesis
from opa.hypothesis import Hypothesis


def test_hypothesis_stores_floats():
    hyp = Hypothesis((1, 2, 2, 3))
    assert hyp.values == (1.0, 2.0, 2.0, 3.0)
    assert hyp.n_conditions == 4
    assert hyp.as_array().dtype == np.float64


def test_hypothesis_rejects_invalid_values():
    with pytest.raises(InvalidHypothesis):
        Hypothesis((1,))
    with pytest.raises(InvalidHypothesis):
        Hypothesis((1, math.nan))
    with pytest.raises(InvalidHypothesis):
        Hypothesis(("a", "b"))


def test_hypothesis_coerce_accepts_arrays_and_instances():
    hyp = Hypothesis.coerce(np.array([3, 1, 2]))
    assert hyp.values == (3.0, 1.0, 2.0)
    assert Hypothesis.coerce(hyp) is hyp


def test_hypothesis_ordering_and_pair_counts():
    hyp = Hypothesis((1, 2, 2))
    assert hyp.ordering().tolist() == [1.0, 1.0, 0.0]
    assert hyp.ordering("adjacent").tolist() == [1.0, 0.0]
    assert hyp.n_pairs() == 3
    assert hyp.n_pairs("adjacent") == 2


def test_hypothesis_summary_lists_relations():
    text = Hypothesis((1, 2, 2.5)).summary()
    assert "Raw hypothesis: 1 2 2.5" in text
    assert "Ordinal relations (pairwise): 1 1 1" in text
    assert "N conditions: 3" in text
    assert "N hypothesised ordinal relations: 3" in text


def test_hypothesis_is_immutable():
    hyp = Hypothesis((1, 2))
    with pytest.raises(AttributeError):
        hyp.values = (2, 1)
    assert hyp.to_dict() == {"values": [1.0, 2.0]}
