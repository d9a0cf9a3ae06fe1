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
from dataclasses import replace

import pytest

from sludgesim.flowsheets.activated_sludge.asm2d_metrics import (
    EffluentQuality,
    SludgeProduction,
    effluent_quality,
    removal_performance,
    pao_metrics,
    sludge_production,
    oxygen_demand,
    phosphorus_balance,
)
from sludgesim.property_models.activated_sludge.asm2d_model import ASM2dModel
from sludgesim.property_models.activated_sludge.asm2d_reactions import (
    PROCESSES,
    ProcessRate,
)
from sludgesim.property_models.activated_sludge.asm2d_state import state_from_dict
from sludgesim.property_models.activated_sludge.influent_fractionation import (
    ConventionalInfluent,
)


MIXED_LIQUOR = state_from_dict(
    {
        "S_I": 30,
        "S_F": 10,
        "S_A": 5,
        "S_O": 2,
        "S_NO": 8,
        "S_NH": 2,
        "S_ND": 1,
        "S_PO4": 0.5,
        "S_ALK": 3,
        "X_I": 1000,
        "X_S": 100,
        "X_H": 1500,
        "X_AUT": 100,
        "X_PAO": 400,
        "X_PHA": 20,
        "X_PP": 40,
        "X_P": 840,
        "X_ND": 5,
    }
)

# organic particulates of MIXED_LIQUOR [g COD/m3]
PARTICULATE_COD = 3960.0


def make_rates(values):
    return tuple(
        ProcessRate(
            p.id,
            p.process,
            p.name,
            values.get(p.process, 0.0),
            p.equation,
            values.get(p.process, 0.0) > 1e-10,
        )
        for p in PROCESSES
    )


def effluent(**values):
    data = dict(
        COD=40.0,
        sCOD=30.0,
        BOD5=10.0,
        TSS=15.0,
        VSS=12.0,
        TKN=3.0,
        NH4N=1.0,
        NO3N=7.0,
        TN=10.0,
        TP=1.0,
        PO4P=0.5,
    )
    data.update(values)
    return EffluentQuality(**data)


class TestEffluentQuality:
    @pytest.mark.unit
    def test_default_clarifier(self):
        quality = effluent_quality(MIXED_LIQUOR)

        assert quality.sCOD == pytest.approx(45)
        assert quality.COD == pytest.approx(45 + 0.05 * PARTICULATE_COD)
        assert quality.BOD5 == pytest.approx(15 + 0.4 * 100 * 0.05)
        assert quality.VSS == pytest.approx(0.05 * PARTICULATE_COD / 1.42)
        assert quality.TSS == pytest.approx(quality.VSS / 0.8)
        assert quality.NH4N == pytest.approx(2)
        assert quality.NO3N == pytest.approx(8)
        assert quality.TKN == pytest.approx(2 + 1 + 5 * 0.05)
        assert quality.TN == pytest.approx(11.25)
        assert quality.PO4P == pytest.approx(0.5)
        assert quality.TP == pytest.approx(0.5 + (40 + 2000 * 0.02) * 0.05)

    @pytest.mark.unit
    def test_perfect_clarifier(self):
        quality = effluent_quality(MIXED_LIQUOR, clarifier_efficiency=1.0)

        assert quality.COD == pytest.approx(quality.sCOD)
        assert quality.TSS == 0
        assert quality.VSS == 0
        assert quality.TP == pytest.approx(quality.PO4P)
        assert quality.BOD5 == pytest.approx(15)

    @pytest.mark.unit
    def test_inert_and_biomass_nutrients_not_counted(self):
        state = state_from_dict({"X_H": 1000, "X_I": 500, "X_P": 200})
        quality = effluent_quality(state)

        assert quality.TKN == 0
        assert quality.TN == 0
        assert quality.TP == pytest.approx(1000 * 0.02 * 0.05)

    @pytest.mark.unit
    def test_to_dict(self):
        quality = effluent_quality(MIXED_LIQUOR).to_dict()
        assert list(quality) == [
            "COD",
            "sCOD",
            "BOD5",
            "TSS",
            "VSS",
            "TKN",
            "NH4N",
            "NO3N",
            "TN",
            "TP",
            "PO4P",
        ]


class TestRemovalPerformance:
    @pytest.mark.unit
    def test_removals(self):
        performance = removal_performance(
            ConventionalInfluent.typical_domestic(), effluent()
        )

        assert performance.BOD5 == pytest.approx(95)
        assert performance.COD == pytest.approx(90)
        assert performance.TSS == pytest.approx(100 * (220 - 15) / 220)
        assert performance.NH4N == pytest.approx(96)
        assert performance.TN == pytest.approx(75)
        assert performance.TP == pytest.approx(87.5)

    @pytest.mark.unit
    def test_clamped(self):
        performance = removal_performance(
            ConventionalInfluent.typical_domestic(), effluent(NH4N=50.0, TP=-1.0)
        )

        assert performance.NH4N == 0
        assert performance.TP == 100

    @pytest.mark.unit
    def test_zero_influent(self):
        influent = replace(ConventionalInfluent.typical_domestic(), TP=0, PO4P=0)
        performance = removal_performance(influent, effluent())

        assert performance.TP == 0


class TestPAOMetrics:
    @pytest.mark.unit
    def test_metrics(self):
        rates = make_rates(
            {
                "storage_PHA": 10.0,
                "aerobic_storage_PP": 1.0,
                "anoxic_storage_PP": 3.0,
            }
        )
        metrics = pao_metrics(MIXED_LIQUOR, rates)

        assert metrics.X_PAO == pytest.approx(400)
        assert metrics.pao_fraction == pytest.approx(20)
        assert metrics.pha_ratio == pytest.approx(0.05)
        assert metrics.pp_ratio == pytest.approx(0.1)
        assert metrics.dpao_activity == pytest.approx(75)
        assert metrics.p_release_rate == pytest.approx(10 * 0.4 / 400)
        assert metrics.p_uptake_rate == pytest.approx(4 / 400)

    @pytest.mark.unit
    def test_washed_out(self):
        state = MIXED_LIQUOR.copy()
        state[13] = 0.05
        metrics = pao_metrics(state, make_rates({"storage_PHA": 10.0}))

        assert metrics.pha_ratio == 0
        assert metrics.pp_ratio == 0
        assert metrics.p_release_rate == 0
        assert metrics.p_uptake_rate == 0
        assert metrics.dpao_activity == 0

    @pytest.mark.unit
    def test_no_biomass(self):
        metrics = pao_metrics(state_from_dict({"S_A": 10}), make_rates({}))
        assert metrics.pao_fraction == 0


class TestSludgeProduction:
    @pytest.mark.unit
    def test_production(self):
        sludge = sludge_production(MIXED_LIQUOR, volume=4500, srt=15)
        tss = PARTICULATE_COD / 1.42 / 0.8

        assert sludge.total_vss == pytest.approx(PARTICULATE_COD / 1.42)
        assert sludge.total_tss == pytest.approx(tss)
        assert sludge.wastage_rate == pytest.approx(300 * tss / 1000)
        assert sludge.p_content == pytest.approx(80 / tss * 100)

    @pytest.mark.unit
    def test_empty_reactor(self):
        sludge = sludge_production(state_from_dict({}), volume=4500, srt=15)

        assert sludge.total_tss == 0
        assert sludge.wastage_rate == 0
        assert sludge.p_content == 0


class TestOxygenDemand:
    @pytest.mark.unit
    def test_single_volume(self):
        rates = make_rates(
            {
                "aerobic_growth_H_SF": 10.0,
                "aerobic_growth_H_SA": 5.0,
                "aerobic_growth_PAO": 2.0,
                "aerobic_storage_PP": 1.0,
                "aerobic_growth_AUT": 1.0,
            }
        )
        demand = oxygen_demand([(rates, 1000.0)], cod_removed_load=20.0)

        nitrogenous = (64 / 14 - 0.24) / 0.24
        assert demand.carbonaceous == pytest.approx(10.4)
        assert demand.nitrogenous == pytest.approx(nitrogenous)
        assert demand.total == pytest.approx(10.4 + nitrogenous)
        assert demand.specific == pytest.approx((10.4 + nitrogenous) / 20)

    @pytest.mark.unit
    def test_zones_add_up(self):
        rates = make_rates({"aerobic_growth_H_SA": 5.0, "aerobic_growth_AUT": 1.0})
        single = oxygen_demand([(rates, 1500.0)])
        zoned = oxygen_demand([(rates, 1000.0), (rates, 500.0)])

        assert zoned.total == pytest.approx(single.total)
        assert zoned.specific == 0

    @pytest.mark.component
    def test_aerated_mixed_liquor(self):
        model = ASM2dModel.build()
        demand = oxygen_demand(
            [(model.process_rates(MIXED_LIQUOR), 3000.0)], model.stoich
        )

        assert demand.carbonaceous > 0
        assert demand.nitrogenous > 0


class TestPhosphorusBalance:
    @pytest.mark.unit
    def test_balance(self):
        sludge = SludgeProduction(
            total_vss=2800, total_tss=3500, wastage_rate=100, p_content=2
        )
        balance = phosphorus_balance(
            ConventionalInfluent.typical_domestic(), effluent(TP=4.5), sludge
        )

        assert balance.influent_load == pytest.approx(8)
        assert balance.effluent_load == pytest.approx(4.5)
        assert balance.sludge_load == pytest.approx(2)
        assert balance.bio_p_removal == pytest.approx(3.5)
        assert balance.closure == pytest.approx(81.25)

    @pytest.mark.unit
    def test_phosphorus_free_influent(self):
        influent = replace(ConventionalInfluent.typical_domestic(), TP=0, PO4P=0)
        sludge = SludgeProduction(
            total_vss=2800, total_tss=3500, wastage_rate=100, p_content=2
        )
        balance = phosphorus_balance(influent, effluent(), sludge)

        assert balance.closure == 100
        assert balance.bio_p_removal == 0
