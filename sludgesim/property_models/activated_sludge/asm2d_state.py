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
"""
ASM2d state vector.

The state is a numpy array of 19 concentrations in the fixed order of
COMPONENT_LIST. Helpers convert between arrays and {name: value} mappings.

Units:
    S_I, S_F, S_A, X_I, X_S, X_H, X_AUT, X_PAO, X_PHA, X_P: g COD/m3
    S_O: g O2/m3
    S_NO, S_NH, S_ND, X_ND, S_N2: g N/m3
    S_PO4, X_PP: g P/m3
    S_ALK: mol HCO3/m3
"""
import numpy as np

from sludgesim.core.parameter_database import ParameterDatabase
from sludgesim.custom_exceptions import InvalidParameterError

COMPONENT_LIST = (
    "S_I",
    "S_F",
    "S_A",
    "S_O",
    "S_NO",
    "S_NH",
    "S_ND",
    "S_PO4",
    "S_ALK",
    "X_I",
    "X_S",
    "X_H",
    "X_AUT",
    "X_PAO",
    "X_PHA",
    "X_PP",
    "X_P",
    "X_ND",
    "S_N2",
)

N_COMPONENTS = len(COMPONENT_LIST)

# Component name -> position in the state vector
IDX = {name: i for i, name in enumerate(COMPONENT_LIST)}

SOLUBLE_COMPONENTS = tuple(c for c in COMPONENT_LIST if c.startswith("S_"))
PARTICULATE_COMPONENTS = tuple(c for c in COMPONENT_LIST if c.startswith("X_"))


def clamp(state):
    """
    Return a copy of the state with every negative concentration set to 0.
    """
    return np.maximum(np.asarray(state, dtype=float), 0.0)


def state_from_dict(values):
    """
    Build a state vector from a {component: concentration} mapping.

    Missing components read as 0 and negative values are clamped to 0.

    Raises:
        InvalidParameterError if the mapping names an unknown component
    """
    state = np.zeros(N_COMPONENTS)
    for name, value in values.items():
        try:
            state[IDX[name]] = value
        except KeyError:
            raise InvalidParameterError(
                f"Unrecognised ASM2d component {name}. Valid components are "
                f"{', '.join(COMPONENT_LIST)}."
            )
    return clamp(state)


def state_to_dict(state):
    """
    Return the state vector as an ordered {component: concentration} dict.
    """
    return {name: float(state[i]) for i, name in enumerate(COMPONENT_LIST)}


def blend(stream_a, stream_b, fraction_b):
    """
    Flow weighted mix of two streams, fraction_b being the share of stream_b.
    """
    return stream_a * (1 - fraction_b) + stream_b * fraction_b


def default_initial_state(database=None):
    """
    Return the packaged reactor seed state as a fresh array.
    """
    if database is None:
        database = ParameterDatabase()
    return state_from_dict(database.get_parameters("initial_state"))
