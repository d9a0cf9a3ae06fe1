#################################################################################
# WaterTAP Copyright (c) 2020-2024, The Regents of the University of California,
# through Lawrence Berkeley National Laboratory, Oak Ridge National Laboratory,
# National Renewable Energy Laboratory, and National Energy Technology
# Laboratory (subject to receipt of any required approvals from the U.S. Dept.
# of Energy). All rights reserved.
#
# Please see the files COPYRIGHT.md and LICENSE.md for full copyright and license
# information, respectively. These files are also available online at the URL
# "https://github.com/watertap-org/watertap/"
#################################################################################
import numpy as np
import pytest

from sludgesim.custom_exceptions import InvalidParameterError
from sludgesim.property_models.activated_sludge.asm2d_state import (
    COMPONENT_LIST,
    IDX,
    N_COMPONENTS,
    SOLUBLE_COMPONENTS,
    PARTICULATE_COMPONENTS,
    blend,
    clamp,
    default_initial_state,
    state_from_dict,
    state_to_dict,
)


@pytest.mark.unit
def test_component_list():
    assert N_COMPONENTS == 19
    assert COMPONENT_LIST[0] == "S_I"
    assert COMPONENT_LIST[17] == "X_ND"
    assert COMPONENT_LIST[18] == "S_N2"
    assert len(SOLUBLE_COMPONENTS) + len(PARTICULATE_COMPONENTS) == N_COMPONENTS
    assert IDX["S_ALK"] == 8


@pytest.mark.unit
def test_state_from_dict():
    state = state_from_dict({"S_NH": 30, "S_O": 2, "X_AUT": 50, "S_PO4": -1})

    assert state.shape == (19,)
    assert state[IDX["S_NH"]] == 30
    assert state[IDX["X_AUT"]] == 50
    # negatives clamp, missing read as 0
    assert state[IDX["S_PO4"]] == 0
    assert state[IDX["X_H"]] == 0


@pytest.mark.unit
def test_state_from_dict_unknown_component():
    with pytest.raises(InvalidParameterError, match="Unrecognised ASM2d component"):
        state_from_dict({"S_NH4": 30})


@pytest.mark.unit
def test_state_to_dict():
    state = np.arange(19, dtype=float)
    values = state_to_dict(state)

    assert list(values) == list(COMPONENT_LIST)
    assert values["S_N2"] == 18.0
    assert np.array_equal(state_from_dict(values), state)


@pytest.mark.unit
def test_clamp():
    state = np.array([-1.0, 2.0] + [0.0] * 17)
    clamped = clamp(state)

    assert clamped[0] == 0
    assert clamped[1] == 2
    # input untouched
    assert state[0] == -1


@pytest.mark.unit
def test_blend():
    a = np.full(19, 10.0)
    b = np.full(19, 40.0)

    assert np.allclose(blend(a, b, 0.5), 25.0)
    assert np.array_equal(blend(a, b, 0.0), a)


@pytest.mark.unit
def test_default_initial_state():
    state = default_initial_state()

    assert state[IDX["X_H"]] == 2000
    assert state[IDX["S_O"]] == 2
    assert state[IDX["S_N2"]] == 0
    # fresh copy on each call
    state[0] = -5
    assert default_initial_state()[0] == 30
