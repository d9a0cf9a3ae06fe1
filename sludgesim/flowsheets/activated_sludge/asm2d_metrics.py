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
Plant performance metrics computed from ASM2d states and process rates.

Effluent quality assumes an ideal secondary clarifier that retains a fixed
fraction of every particulate component and passes solubles unchanged.
"""
from dataclasses import dataclass, asdict

from sludgesim.property_models.activated_sludge.asm2d_parameters import (
    StoichiometricParameters,
)
from sludgesim.property_models.activated_sludge.asm2d_reactions import (
    rates_by_process,
)
from sludgesim.property_models.activated_sludge.asm2d_state import IDX
from sludgesim.property_models.activated_sludge.asm2d_stoichiometry import (
    COD_NITRATE,
)
from sludgesim.property_models.activated_sludge.switching_functions import (
    safe_ratio,
)


DEFAULT_CLARIFIER_EFFICIENCY = 0.95
# g COD/g VSS
COD_PER_VSS = 1.42
VSS_TSS_RATIO = 0.8
# share of X_S exerted within 5 days
BOD5_XS_FRACTION = 0.4

ORGANIC_PARTICULATES = ("X_I", "X_S", "X_H", "X_AUT", "X_PAO", "X_PHA", "X_P")
ACTIVE_BIOMASS = ("X_H", "X_AUT", "X_PAO")


class _Metrics:
    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class EffluentQuality(_Metrics):
    """Clarified effluent concentrations [mg/L]"""

    COD: float
    sCOD: float
    BOD5: float
    TSS: float
    VSS: float
    TKN: float
    NH4N: float
    NO3N: float
    TN: float
    TP: float
    PO4P: float


@dataclass(frozen=True)
class RemovalPerformance(_Metrics):
    """Removal efficiencies [%], each within 0 - 100"""

    BOD5: float
    COD: float
    TSS: float
    NH4N: float
    TN: float
    TP: float


@dataclass(frozen=True)
class PAOMetrics(_Metrics):
    """
    Phosphate accumulating organism population and activity.

    Attributes:
        X_PAO - PAO concentration [g COD/m3]
        pao_fraction - PAO share of the active biomass [%]
        pha_ratio - X_PHA / X_PAO [g COD/g COD]
        pp_ratio - X_PP / X_PAO [g P/g COD]
        dpao_activity - anoxic share of the total PP storage [%]
        p_release_rate - specific P release [g P/g COD/d]
        p_uptake_rate - specific P uptake [g P/g COD/d]
    """

    X_PAO: float
    pao_fraction: float
    pha_ratio: float
    pp_ratio: float
    dpao_activity: float
    p_release_rate: float
    p_uptake_rate: float


@dataclass(frozen=True)
class SludgeProduction(_Metrics):
    """
    Attributes:
        total_vss - mixed liquor VSS [g/m3]
        total_tss - mixed liquor TSS [g/m3]
        wastage_rate - waste sludge production [kg TSS/d]
        p_content - phosphorus content of the sludge [% of TSS]
    """

    total_vss: float
    total_tss: float
    wastage_rate: float
    p_content: float


@dataclass(frozen=True)
class OxygenDemand(_Metrics):
    """
    Attributes:
        carbonaceous - heterotroph and PAO oxygen demand [kg O2/d]
        nitrogenous - nitrifier oxygen demand [kg O2/d]
        total - [kg O2/d]
        specific - [kg O2/kg COD removed], 0 if no COD is removed
    """

    carbonaceous: float
    nitrogenous: float
    total: float
    specific: float


@dataclass(frozen=True)
class PhosphorusBalance(_Metrics):
    """
    Attributes:
        influent_load, effluent_load, sludge_load - [kg P/d]
        bio_p_removal - influent minus effluent load [kg P/d]
        closure - (effluent + sludge) / influent load [%]
    """

    influent_load: float
    effluent_load: float
    sludge_load: float
    bio_p_removal: float
    closure: float


def _sum(state, names):
    return float(sum(state[IDX[n]] for n in names))


def effluent_quality(
    state, clarifier_efficiency=DEFAULT_CLARIFIER_EFFICIENCY, stoich=None
):
    """
    Effluent concentrations leaving a clarifier fed with the mixed liquor.

    TKN is NH4-N plus S_ND and the escaped X_ND, and TP is PO4-P plus the
    escaped X_PP and active biomass P. Biomass N and the N and P held in
    X_I and X_P are not counted.

    Args:
        state - ASM2d state vector of the mixed liquor
        clarifier_efficiency - retained fraction of the particulates
        stoich - (optional) StoichiometricParameters, for the biomass P
                 content

    Returns:
        EffluentQuality
    """
    if stoich is None:
        stoich = StoichiometricParameters.default()
    escape = 1 - clarifier_efficiency

    sCOD = _sum(state, ("S_I", "S_F", "S_A"))
    pCOD = _sum(state, ORGANIC_PARTICULATES) * escape
    VSS = pCOD / COD_PER_VSS

    NH4N = float(state[IDX["S_NH"]])
    NO3N = float(state[IDX["S_NO"]])
    TKN = NH4N + float(state[IDX["S_ND"]]) + float(state[IDX["X_ND"]]) * escape

    PO4P = float(state[IDX["S_PO4"]])
    particulate_P = (
        float(state[IDX["X_PP"]]) + _sum(state, ACTIVE_BIOMASS) * stoich.i_PB
    ) * escape

    return EffluentQuality(
        COD=sCOD + pCOD,
        sCOD=sCOD,
        BOD5=_sum(state, ("S_F", "S_A"))
        + BOD5_XS_FRACTION * float(state[IDX["X_S"]]) * escape,
        TSS=VSS / VSS_TSS_RATIO,
        VSS=VSS,
        TKN=TKN,
        NH4N=NH4N,
        NO3N=NO3N,
        TN=TKN + NO3N,
        TP=PO4P + particulate_P,
        PO4P=PO4P,
    )


def _removal(influent_value, effluent_value):
    if not influent_value > 0:
        return 0.0
    removal = (influent_value - effluent_value) / influent_value * 100
    return min(100.0, max(0.0, removal))


def removal_performance(influent, effluent):
    """
    Percentage removals between a ConventionalInfluent and an
    EffluentQuality. Total nitrogen removal is referred to the influent TKN.
    """
    return RemovalPerformance(
        BOD5=_removal(influent.BOD5, effluent.BOD5),
        COD=_removal(influent.COD, effluent.COD),
        TSS=_removal(influent.TSS, effluent.TSS),
        NH4N=_removal(influent.NH4N, effluent.NH4N),
        TN=_removal(influent.TKN, effluent.TN),
        TP=_removal(influent.TP, effluent.TP),
    )


def pao_metrics(state, process_rates, stoich=None):
    """
    PAO population metrics of a state.

    Args:
        state - ASM2d state vector
        process_rates - ProcessRate records evaluated at ``state``
        stoich - (optional) StoichiometricParameters, for Y_PO4

    Returns:
        PAOMetrics; ratios and specific rates are 0 below the biomass floor
    """
    if stoich is None:
        stoich = StoichiometricParameters.default()
    rates = rates_by_process(process_rates)
    X_PAO = float(state[IDX["X_PAO"]])
    active = _sum(state, ACTIVE_BIOMASS)

    anoxic_pp = rates.get("anoxic_storage_PP", 0.0)
    aerobic_pp = rates.get("aerobic_storage_PP", 0.0)
    total_pp = anoxic_pp + aerobic_pp

    return PAOMetrics(
        X_PAO=X_PAO,
        pao_fraction=X_PAO / active * 100 if active > 0 else 0.0,
        pha_ratio=safe_ratio(float(state[IDX["X_PHA"]]), X_PAO),
        pp_ratio=safe_ratio(float(state[IDX["X_PP"]]), X_PAO),
        dpao_activity=anoxic_pp / total_pp * 100 if total_pp > 0 else 0.0,
        p_release_rate=safe_ratio(
            rates.get("storage_PHA", 0.0) * stoich.Y_PO4, X_PAO
        ),
        p_uptake_rate=safe_ratio(total_pp, X_PAO),
    )


def sludge_production(state, volume, srt, stoich=None):
    """
    Waste sludge production of a reactor held at a sludge retention time.

    Args:
        state - ASM2d state vector of the mixed liquor
        volume - reactor volume [m3]
        srt - sludge retention time [d]
        stoich - (optional) StoichiometricParameters, for the biomass P
                 content

    Returns:
        SludgeProduction
    """
    if stoich is None:
        stoich = StoichiometricParameters.default()
    total_vss = _sum(state, ORGANIC_PARTICULATES) / COD_PER_VSS
    total_tss = total_vss / VSS_TSS_RATIO
    total_P = (
        float(state[IDX["X_PP"]]) + _sum(state, ACTIVE_BIOMASS) * stoich.i_PB
    )
    return SludgeProduction(
        total_vss=total_vss,
        total_tss=total_tss,
        wastage_rate=volume / srt * total_tss / 1000 if srt > 0 else 0.0,
        p_content=total_P / total_tss * 100 if total_tss > 0 else 0.0,
    )


def oxygen_demand(rate_volumes, stoich=None, cod_removed_load=0.0):
    """
    Oxygen demand of one or more reactor volumes.

    Args:
        rate_volumes - iterable of (process_rates, volume [m3]) pairs, one
                       per zone
        stoich - (optional) StoichiometricParameters
        cod_removed_load - COD removed by the plant [kg COD/d]

    Returns:
        OxygenDemand
    """
    if stoich is None:
        stoich = StoichiometricParameters.default()

    carbonaceous = 0.0
    nitrogenous = 0.0
    for process_rates, volume in rate_volumes:
        rates = rates_by_process(process_rates)
        our_C = (
            (1 - stoich.Y_H)
            / stoich.Y_H
            * (rates["aerobic_growth_H_SF"] + rates["aerobic_growth_H_SA"])
            + (1 - stoich.Y_PAO) / stoich.Y_PAO * rates["aerobic_growth_PAO"]
            + stoich.Y_PHA * rates["aerobic_storage_PP"]
        )
        our_N = (COD_NITRATE - stoich.Y_AUT) / stoich.Y_AUT * rates[
            "aerobic_growth_AUT"
        ]
        # g O2/m3/d to kg O2/d
        carbonaceous += our_C * volume / 1000
        nitrogenous += our_N * volume / 1000

    total = carbonaceous + nitrogenous
    return OxygenDemand(
        carbonaceous=carbonaceous,
        nitrogenous=nitrogenous,
        total=total,
        specific=total / cod_removed_load if cod_removed_load > 0 else 0.0,
    )


def phosphorus_balance(influent, effluent, sludge):
    """
    Plant phosphorus balance.

    Args:
        influent - ConventionalInfluent
        effluent - EffluentQuality
        sludge - SludgeProduction

    Returns:
        PhosphorusBalance; closure is 100 % for a P free influent
    """
    influent_load = influent.flow_rate * influent.TP / 1000
    effluent_load = influent.flow_rate * effluent.TP / 1000
    sludge_load = sludge.wastage_rate * sludge.p_content / 100

    return PhosphorusBalance(
        influent_load=influent_load,
        effluent_load=effluent_load,
        sludge_load=sludge_load,
        bio_p_removal=max(0.0, influent_load - effluent_load),
        closure=(
            (effluent_load + sludge_load) / influent_load * 100
            if influent_load > 0
            else 100.0
        ),
    )
