import json
import math

import numpy as np
import pandas as pd
import pytest

from opa.config import OpaConfig
from opa.errors import InvalidDimension
from opa.fit import POOLED, fit_opa

DATA = np.array([[1.0, 2.0, 3.0], [3.0, 2.0, 1.0], [1.0, 3.0, 2.0]])


def _config(**overrides) -> OpaConfig:
    values = {"nreps": 100, "seed": 1}
    values.update(overrides)
    return OpaConfig(**values)


def test_fit_opa_ungrouped_summary_values():
    fit = fit_opa(DATA, [1, 2, 3], config=_config())
    assert not fit.grouped
    assert fit.correct_pairs == 5
    assert fit.total_pairs == 9
    assert fit.incorrect_pairs == 4
    assert math.isclose(fit.group_pcc, 500.0 / 9.0)
    assert fit.individual_pccs[:2] == [100.0, 0.0]
    assert fit.individual_idx == [0, 1, 2]
    assert fit.group_labels == [POOLED] * 3
    assert len(fit.rand_pccs) == 100
    assert fit.nreps == 100
    assert 0.0 <= fit.group_cval <= 1.0
    assert fit.columns == ["1", "2", "3"]


def test_fit_opa_is_reproducible_with_seed():
    first = fit_opa(DATA, [1, 2, 3], config=_config(seed=9))
    second = fit_opa(DATA, [1, 2, 3], config=_config(seed=9))
    assert first.rand_pccs == second.rand_pccs
    assert first.individual_cvals == second.individual_cvals


def test_fit_opa_uses_data_frame_columns():
    frame = pd.DataFrame(DATA, columns=["low", "mid", "high"])
    fit = fit_opa(frame, [1, 2, 3], config=_config())
    assert fit.columns == ["low", "mid", "high"]
    assert fit.condition_pccs.shape == (3, 3)


def test_fit_opa_exact_method():
    fit = fit_opa(DATA, [1, 2, 3], config=_config(cval_method="exact"))
    assert fit.n_permutations == 18
    assert fit.nreps is None
    assert fit.individual_cvals[1] == 1.0


def test_fit_opa_grouped_keeps_first_appearance_order():
    data = np.array([[1.0, 2.0, 3.0], [3.0, 2.0, 1.0], [1.0, 3.0, 2.0], [2.0, 1.0, 3.0]])
    fit = fit_opa(data, [1, 2, 3], group=["b", "a", "b", "a"], config=_config())
    assert fit.grouped
    assert [group_fit.label for group_fit in fit.groups] == ["b", "a"]
    assert fit.individual_idx == [0, 2, 1, 3]
    assert fit.group_labels == ["b", "b", "a", "a"]
    assert fit.group_cval is None
    assert set(fit.group_cvals) == {"a", "b"}
    assert math.isclose(fit.group_pccs["b"], 500.0 / 6.0)
    assert fit.group("a").row_index == [1, 3]
    with pytest.raises(ValueError, match="grouped"):
        fit.rand_pccs
    with pytest.raises(KeyError):
        fit.group("c")


def test_fit_opa_grouped_follows_categorical_levels():
    group = pd.Categorical(["x", "y", "x"], categories=["y", "x"])
    fit = fit_opa(DATA, [1, 2, 3], group=group, config=_config())
    assert [group_fit.label for group_fit in fit.groups] == ["y", "x"]
    assert fit.individual_idx == [1, 0, 2]


def test_fit_opa_rejects_mismatched_inputs():
    with pytest.raises(InvalidDimension):
        fit_opa(DATA, [1, 2], config=_config())
    with pytest.raises(InvalidDimension):
        fit_opa(DATA, [1, 2, 3], group=["a", "b"], config=_config())


def test_fit_opa_marks_unscorable_rows():
    data = np.array([[1.0, 2.0, 3.0], [np.nan, 2.0, np.nan]])
    fit = fit_opa(data, [1, 2, 3], config=_config(nreps=10))
    assert fit.individual_pccs == [100.0, None]
    assert fit.individual_cvals[1] is None


def test_fit_opa_to_dict_is_json_serialisable():
    fit = fit_opa(DATA, [1, 2, 3], group=["a", "a", "b"], config=_config(nreps=10))
    payload = json.loads(json.dumps(fit.to_dict()))
    assert payload["grouped"] is True
    assert payload["total_pairs"] == 9
    assert [group["label"] for group in payload["groups"]] == ["a", "b"]
    assert payload["groups"][0]["cvals"]["nreps"] == 10
