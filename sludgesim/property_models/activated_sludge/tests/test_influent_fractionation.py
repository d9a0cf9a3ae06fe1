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
import pytest

from sludgesim.custom_exceptions import InvalidParameterError
from sludgesim.core.parameter_database import ParameterDatabase
from sludgesim.property_models.activated_sludge.asm2d_state import IDX
from sludgesim.property_models.activated_sludge.influent_fractionation import (
    ConventionalInfluent,
    fractionate_influent,
    get_fractions,
)

COD_COMPONENTS = ("S_I", "S_F", "S_A", "X_I", "X_S")


def total_cod(state):
    return sum(state[IDX[c]] for c in COD_COMPONENTS)


class TestFractionation:
    @pytest.fixture(scope="class")
    def influent(self):
        return ConventionalInfluent.typical_domestic()

    @pytest.fixture(scope="class")
    def state(self, influent):
        return fractionate_influent(influent)

    @pytest.mark.unit
    def test_cod(self, state):
        assert total_cod(state) == pytest.approx(400)
        assert state[IDX["S_I"]] == pytest.approx(20)
        assert state[IDX["S_F"]] == pytest.approx(60)
        assert state[IDX["S_A"]] == pytest.approx(20)
        assert state[IDX["X_I"]] == pytest.approx(52)
        assert state[IDX["X_S"]] == pytest.approx(248)

    @pytest.mark.unit
    def test_nitrogen(self, state):
        assert state[IDX["S_NH"]] == 25
        assert state[IDX["S_ND"]] == pytest.approx(5)
        assert state[IDX["X_ND"]] == pytest.approx(10)

    @pytest.mark.unit
    def test_phosphorus_and_alkalinity(self, state):
        assert state[IDX["S_PO4"]] == 5
        assert state[IDX["S_ALK"]] == pytest.approx(5)

    @pytest.mark.unit
    def test_no_oxygen_nitrate_or_biomass(self, state):
        for name in ("S_O", "S_NO", "X_H", "X_AUT", "X_PAO", "X_PHA", "X_PP", "X_P"):
            assert state[IDX[name]] == 0

    @pytest.mark.unit
    def test_measured_vfa(self):
        influent = ConventionalInfluent(
            flow_rate=1000,
            COD=400,
            BOD5=200,
            TSS=220,
            VSS=180,
            TKN=40,
            NH4N=25,
            TP=8,
            PO4P=5,
            alkalinity=250,
            VFA=30,
        )
        state = fractionate_influent(influent)

        assert state[IDX["S_A"]] == 30
        assert state[IDX["S_F"]] == pytest.approx(50)
        assert total_cod(state) == pytest.approx(400)

    @pytest.mark.unit
    def test_vfa_limited_to_readily_biodegradable(self):
        influent = ConventionalInfluent(
            flow_rate=1000,
            COD=100,
            BOD5=50,
            TSS=50,
            VSS=40,
            TKN=10,
            NH4N=8,
            TP=2,
            PO4P=1,
            alkalinity=100,
            VFA=60,
        )
        state = fractionate_influent(influent)

        assert state[IDX["S_A"]] == pytest.approx(20)
        assert state[IDX["S_F"]] == 0
        assert total_cod(state) == pytest.approx(100)

    @pytest.mark.unit
    def test_phosphate_from_total_p(self):
        influent = ConventionalInfluent(
            flow_rate=1000,
            COD=400,
            BOD5=200,
            TSS=220,
            VSS=180,
            TKN=40,
            NH4N=25,
            TP=8,
            PO4P=0,
            alkalinity=250,
        )
        assert fractionate_influent(influent)[IDX["S_PO4"]] == pytest.approx(6)

    @pytest.mark.unit
    def test_septic_fractions(self, influent):
        state = fractionate_influent(influent, get_fractions("septic"))

        assert state[IDX["S_A"]] == pytest.approx(40)
        assert state[IDX["S_F"]] == pytest.approx(40)
        assert total_cod(state) == pytest.approx(400)


class TestValidation:
    @pytest.mark.unit
    def test_negative_value(self):
        with pytest.raises(InvalidParameterError, match="COD must be non-negative"):
            ConventionalInfluent(
                flow_rate=1000,
                COD=-1,
                BOD5=200,
                TSS=220,
                VSS=180,
                TKN=40,
                NH4N=25,
                TP=8,
                PO4P=5,
                alkalinity=250,
            )

    @pytest.mark.unit
    def test_ammonium_above_tkn(self):
        with pytest.raises(InvalidParameterError, match="can not exceed TKN"):
            ConventionalInfluent(
                flow_rate=1000,
                COD=400,
                BOD5=200,
                TSS=220,
                VSS=180,
                TKN=20,
                NH4N=25,
                TP=8,
                PO4P=5,
                alkalinity=250,
            )

    @pytest.mark.unit
    def test_cod_fractions_must_close(self):
        fractions = ParameterDatabase().get_parameters("influent_fractions")
        fractions["cod"]["f_XS"] = 0.5

        with pytest.raises(InvalidParameterError, match="add up to 1"):
            fractionate_influent(ConventionalInfluent.typical_domestic(), fractions)

    @pytest.mark.unit
    def test_negative_fraction(self):
        fractions = ParameterDatabase().get_parameters("influent_fractions")
        fractions["nitrogen"]["f_SND"] = -0.1

        with pytest.raises(InvalidParameterError, match="must be non-negative"):
            fractionate_influent(ConventionalInfluent.typical_domestic(), fractions)
