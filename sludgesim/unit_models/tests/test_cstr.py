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
from sludgesim.property_models.activated_sludge.asm2d_model import ASM2dModel
from sludgesim.property_models.activated_sludge.asm2d_state import (
    IDX,
    N_COMPONENTS,
    default_initial_state,
    state_from_dict,
)
from sludgesim.property_models.activated_sludge.influent_fractionation import (
    ConventionalInfluent,
    fractionate_influent,
)
from sludgesim.unit_models.cstr import (
    Converged,
    MaxIterationsReached,
    ReactorZone,
    batch_derivatives,
    cstr_derivatives,
    solve_steady_state,
)
from sludgesim.unit_models.unit_model_config_enums import ZoneType


@pytest.fixture(scope="module")
def model():
    return ASM2dModel.build()


# Influent and reactor content without any biomass, so only the flow terms act
BIOMASS_FREE_INFLUENT = {
    "S_I": 30,
    "S_F": 50,
    "S_A": 20,
    "S_NH": 25,
    "S_ND": 5,
    "S_PO4": 5,
    "S_ALK": 5,
    "X_I": 50,
    "X_S": 200,
    "X_ND": 10,
}


class TestDerivatives:
    @pytest.mark.unit
    def test_batch(self, model):
        state = default_initial_state()

        assert np.array_equal(
            batch_derivatives(state, model), model.matrix.T @ model.rates(state)
        )

    @pytest.mark.unit
    def test_zero_flow_aerobic(self, model):
        state = default_initial_state()
        state[IDX["S_O"]] = 1.5
        derivatives = cstr_derivatives(
            state, state.copy(), 12, model, ZoneType.aerobic, do_setpoint=1.5
        )

        assert np.array_equal(derivatives, batch_derivatives(state, model))

    @pytest.mark.unit
    def test_zero_flow_anoxic(self, model):
        state = default_initial_state()
        state[IDX["S_O"]] = 0.0
        derivatives = cstr_derivatives(state, state.copy(), 6, model, ZoneType.anoxic)

        assert np.array_equal(derivatives, batch_derivatives(state, model))

    @pytest.mark.unit
    def test_flow_term(self, model):
        influent = state_from_dict(BIOMASS_FREE_INFLUENT)
        state = np.zeros(N_COMPONENTS)
        derivatives = cstr_derivatives(state, influent, 12, model, ZoneType.aerobic)

        # no biomass, no reactions: only dilution with HRT of 0.5 d
        expected = influent / 0.5
        expected[IDX["S_O"]] = 2.0 / 0.5
        assert np.allclose(derivatives, expected)

    @pytest.mark.unit
    @pytest.mark.parametrize("zone_type", [ZoneType.anaerobic, ZoneType.anoxic])
    def test_unaerated_oxygen_target(self, model, zone_type):
        influent = state_from_dict(dict(BIOMASS_FREE_INFLUENT, S_O=4))
        state = state_from_dict({"S_O": 1.0})
        derivatives = cstr_derivatives(state, influent, 24, model, zone_type)

        assert derivatives[IDX["S_O"]] == pytest.approx(-1.0)


class TestSteadyStateSolver:
    @pytest.mark.component
    def test_attractor(self, model):
        influent = state_from_dict(BIOMASS_FREE_INFLUENT)
        start_a = np.zeros(N_COMPONENTS)
        start_b = state_from_dict(
            {k: 0.5 * v for k, v in BIOMASS_FREE_INFLUENT.items()}
        )
        start_b[IDX["S_O"]] = 5.0

        result_a = solve_steady_state(influent, 24, model, initial_state=start_a)
        result_b = solve_steady_state(influent, 24, model, initial_state=start_b)

        assert isinstance(result_a, Converged)
        assert isinstance(result_b, Converged)
        assert result_a.converged and result_b.converged
        assert result_a.iterations < 10000
        assert result_a.max_change < 1e-6

        expected = influent.copy()
        expected[IDX["S_O"]] = 2.0
        assert np.allclose(result_a.state, expected, rtol=1e-4, atol=1e-4)
        assert np.allclose(result_b.state, expected, rtol=1e-4, atol=1e-4)
        assert np.allclose(result_a.state, result_b.state, rtol=1e-4, atol=1e-4)

    @pytest.mark.component
    def test_iteration_cap(self, model):
        influent = fractionate_influent(ConventionalInfluent.typical_domestic())
        result = solve_steady_state(influent, 12, model, max_iterations=50)

        assert isinstance(result, MaxIterationsReached)
        assert not result.converged
        assert result.iterations == 50
        # no convergence check within 50 steps
        assert result.max_change == float("inf")

    @pytest.mark.component
    @pytest.mark.parametrize(
        "zone_type", [ZoneType.anaerobic, ZoneType.anoxic, ZoneType.aerobic]
    )
    def test_non_negative(self, model, zone_type):
        influent = fractionate_influent(ConventionalInfluent.typical_domestic())
        result = solve_steady_state(
            influent, 6, model, zone_type=zone_type, max_iterations=2000
        )

        assert np.all(result.state >= 0)
        assert np.all(np.isfinite(result.state))

    @pytest.mark.unit
    def test_initial_state_not_modified(self, model):
        influent = state_from_dict(BIOMASS_FREE_INFLUENT)
        start = default_initial_state()
        before = start.copy()
        solve_steady_state(influent, 12, model, initial_state=start, max_iterations=10)

        assert np.array_equal(start, before)

    @pytest.mark.unit
    def test_invalid_hrt(self, model):
        influent = state_from_dict(BIOMASS_FREE_INFLUENT)
        with pytest.raises(InvalidParameterError, match="must be positive"):
            solve_steady_state(influent, 0, model)

    @pytest.mark.unit
    def test_invalid_option(self, model):
        influent = state_from_dict(BIOMASS_FREE_INFLUENT)
        with pytest.raises(ValueError):
            solve_steady_state(influent, 12, model, time_step=-0.01)


class TestReactorZone:
    @pytest.mark.unit
    def test_from_dict(self):
        zone = ReactorZone.from_dict(
            {
                "id": "anoxic",
                "name": "Anoxic zone",
                "zone_type": "anoxic",
                "volume": 1000.0,
            }
        )

        assert zone.id == "anoxic"
        assert zone.name == "Anoxic zone"
        assert zone.zone_type is ZoneType.anoxic
        assert zone.do_setpoint == 0.0
        assert zone.hydraulic_retention_time(1000) == pytest.approx(24)
        assert np.array_equal(zone.state, default_initial_state())
        assert zone.status is None

    @pytest.mark.unit
    def test_aerobic_defaults(self):
        zone = ReactorZone(id="aerobic", volume=3000)

        assert zone.zone_type is ZoneType.aerobic
        assert zone.do_setpoint == 2.0
        assert zone.name == "aerobic"

    @pytest.mark.unit
    def test_display_name_keyword(self):
        zone = ReactorZone(
            id="ax", name="Anoxic zone", zone_type=ZoneType.anoxic, volume=500
        )

        assert zone.name == "Anoxic zone"
        assert zone.id == "ax"

    @pytest.mark.unit
    def test_explicit_hrt(self):
        zone = ReactorZone(
            id="aer", zone_type=ZoneType.aerobic, hrt=8, do_setpoint=1.5
        )

        assert zone.hydraulic_retention_time(1000) == 8
        assert zone.do_setpoint == 1.5

    @pytest.mark.unit
    def test_missing_id(self):
        with pytest.raises(InvalidParameterError, match="require an id"):
            ReactorZone(volume=100)

    @pytest.mark.unit
    def test_missing_size(self):
        with pytest.raises(InvalidParameterError, match="needs a volume"):
            ReactorZone(id="z1")

    @pytest.mark.unit
    def test_invalid_volume(self):
        with pytest.raises(InvalidParameterError):
            ReactorZone(id="z1", volume=-5)

    @pytest.mark.unit
    def test_invalid_zone_type(self):
        with pytest.raises(InvalidParameterError):
            ReactorZone(id="z1", volume=100, zone_type="oxic")

    @pytest.mark.unit
    def test_invalid_flow(self):
        zone = ReactorZone(id="z1", volume=100)
        with pytest.raises(InvalidParameterError, match="Influent flow"):
            zone.hydraulic_retention_time(0)

    @pytest.mark.component
    def test_solve_updates_state(self, model):
        influent = state_from_dict(BIOMASS_FREE_INFLUENT)
        zone = ReactorZone(
            initial_state=np.zeros(N_COMPONENTS), id="aer", volume=1000
        )
        result = zone.solve(influent, model, influent_flow=1000)

        assert zone.status is result
        assert result.converged
        assert zone.state is result.state
        assert zone.state[IDX["S_O"]] == pytest.approx(2.0, rel=1e-4)
        assert np.allclose(
            zone.derivatives(influent, model, 1000),
            cstr_derivatives(zone.state, influent, 24, model, ZoneType.aerobic),
        )
