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
ASM2d process rates.

The 21 biological process rates of ASM2d evaluated for one state vector.
Rates are in g/(m3.d) of the process reference component and are never
cached: every derivative evaluation recomputes them from the current state.

Reference:

[1] Henze, M., Gujer, W., Mino, T., Matsuo, T., Wentzel, M.C., Marais, G.v.R.,
Van Loosdrecht, M.C.M., "Activated Sludge Model No.2D, ASM2D", 1999,
Wat. Sci. Tech. Vol. 39, No. 1, pp. 165-182
"""
from collections import namedtuple

import numpy as np

from sludgesim.property_models.activated_sludge.asm2d_state import IDX
from sludgesim.property_models.activated_sludge.switching_functions import (
    EPS,
    monod as M,
    inhibition as I,
    saturation_inhibition,
    safe_ratio,
    is_anaerobic,
)

# Rates at or below this value are reported as inactive
ACTIVITY_THRESHOLD = 1e-10

Process = namedtuple("Process", ["id", "process", "name", "equation"])

ProcessRate = namedtuple(
    "ProcessRate", ["id", "process", "name", "rate", "equation", "active"]
)

# R1: Aerobic hydrolysis
# R2: Anoxic hydrolysis
# R3: Anaerobic hydrolysis
# R4: Aerobic growth on S_F
# R5: Aerobic growth on S_A
# R6: Anoxic growth on S_F
# R7: Anoxic growth on S_A
# R8: Fermentation
# R9: Lysis of X_H
# R10: Storage of X_PHA
# R11: Aerobic storage of X_PP
# R12: Anoxic storage of X_PP
# R13: Aerobic growth of X_PAO
# R14: Anoxic growth of X_PAO
# R15: Lysis of X_PAO
# R16: Lysis of X_PP
# R17: Lysis of X_PHA
# R18: Aerobic growth of X_AUT
# R19: Lysis of X_AUT
# R20: Precipitation
# R21: Re-dissolution
PROCESSES = (
    Process(
        "R1",
        "aerobic_hydrolysis",
        "Aerobic hydrolysis",
        "k_h * (X_S/X_H)/(K_X + X_S/X_H) * S_O/(K_O + S_O) * X_H",
    ),
    Process(
        "R2",
        "anoxic_hydrolysis",
        "Anoxic hydrolysis",
        "k_h * eta_H * (X_S/X_H)/(K_X + X_S/X_H) * K_O/(K_O + S_O)"
        " * S_NO/(K_NO + S_NO) * X_H",
    ),
    Process(
        "R3",
        "anaerobic_hydrolysis",
        "Anaerobic hydrolysis",
        "k_h * eta_fe * (X_S/X_H)/(K_X + X_S/X_H) * K_O/(K_O + S_O)"
        " * K_NO/(K_NO + S_NO) * X_H",
    ),
    Process(
        "R4",
        "aerobic_growth_H_SF",
        "Aerobic growth of X_H on S_F",
        "mu_H * S_F/(K_S + S_F) * S_O/(K_O + S_O) * S_NH/(K_NH + S_NH)"
        " * S_ALK/(K_ALK + S_ALK) * X_H",
    ),
    Process(
        "R5",
        "aerobic_growth_H_SA",
        "Aerobic growth of X_H on S_A",
        "mu_H * S_A/(K_SA + S_A) * S_O/(K_O + S_O) * S_NH/(K_NH + S_NH)"
        " * S_ALK/(K_ALK + S_ALK) * X_H",
    ),
    Process(
        "R6",
        "anoxic_growth_H_SF",
        "Anoxic growth of X_H on S_F",
        "mu_H * eta_G * S_F/(K_S + S_F) * K_O/(K_O + S_O) * S_NO/(K_NO + S_NO)"
        " * S_NH/(K_NH + S_NH) * S_ALK/(K_ALK + S_ALK) * X_H",
    ),
    Process(
        "R7",
        "anoxic_growth_H_SA",
        "Anoxic growth of X_H on S_A",
        "mu_H * eta_G * S_A/(K_SA + S_A) * K_O/(K_O + S_O) * S_NO/(K_NO + S_NO)"
        " * S_NH/(K_NH + S_NH) * S_ALK/(K_ALK + S_ALK) * X_H",
    ),
    Process(
        "R8",
        "fermentation",
        "Fermentation",
        "q_fe * S_F/(K_fe + S_F) * K_O/(K_O + S_O) * K_NO/(K_NO + S_NO)"
        " * S_ALK/(K_ALK + S_ALK) * X_H   [anaerobic only]",
    ),
    Process("R9", "lysis_H", "Lysis of X_H", "b_H * X_H"),
    Process(
        "R10",
        "storage_PHA",
        "Storage of X_PHA",
        "q_PHA * S_A/(K_A + S_A) * S_ALK/(K_ALK + S_ALK)"
        " * (X_PP/X_PAO)/(K_PP + X_PP/X_PAO) * K_O_PAO/(K_O_PAO + S_O)"
        " * K_NO/(K_NO + S_NO) * X_PAO",
    ),
    Process(
        "R11",
        "aerobic_storage_PP",
        "Aerobic storage of X_PP",
        "q_PP * S_O/(K_O_PAO + S_O) * S_PO4/(K_P + S_PO4) * S_ALK/(K_ALK + S_ALK)"
        " * (X_PHA/X_PAO)/(K_PHA + X_PHA/X_PAO)"
        " * (K_MAX - X_PP/X_PAO)/(K_IPP + K_MAX - X_PP/X_PAO) * X_PAO",
    ),
    Process(
        "R12",
        "anoxic_storage_PP",
        "Anoxic storage of X_PP",
        "eta_NO3_PAO * q_PP * K_O_PAO/(K_O_PAO + S_O) * S_NO/(K_NO + S_NO)"
        " * S_PO4/(K_P + S_PO4) * S_ALK/(K_ALK + S_ALK)"
        " * (X_PHA/X_PAO)/(K_PHA + X_PHA/X_PAO)"
        " * (K_MAX - X_PP/X_PAO)/(K_IPP + K_MAX - X_PP/X_PAO) * X_PAO"
        "   [S_O < K_O_PAO only]",
    ),
    Process(
        "R13",
        "aerobic_growth_PAO",
        "Aerobic growth of X_PAO",
        "mu_PAO * S_O/(K_O_PAO + S_O) * S_NH/(K_NH_PAO + S_NH)"
        " * S_PO4/(K_P + S_PO4) * S_ALK/(K_ALK + S_ALK)"
        " * (X_PHA/X_PAO)/(K_PHA + X_PHA/X_PAO) * X_PAO",
    ),
    Process(
        "R14",
        "anoxic_growth_PAO",
        "Anoxic growth of X_PAO",
        "eta_NO3_PAO * mu_PAO * K_O_PAO/(K_O_PAO + S_O) * S_NO/(K_NO + S_NO)"
        " * S_NH/(K_NH_PAO + S_NH) * S_PO4/(K_P + S_PO4) * S_ALK/(K_ALK + S_ALK)"
        " * (X_PHA/X_PAO)/(K_PHA + X_PHA/X_PAO) * X_PAO   [S_O < K_O_PAO only]",
    ),
    Process("R15", "lysis_PAO", "Lysis of X_PAO", "b_PAO * X_PAO"),
    Process("R16", "lysis_PP", "Lysis of X_PP", "b_PP * X_PP"),
    Process("R17", "lysis_PHA", "Lysis of X_PHA", "b_PHA * X_PHA"),
    Process(
        "R18",
        "aerobic_growth_AUT",
        "Aerobic growth of X_AUT",
        "mu_AUT * S_NH/(K_NH + S_NH) * S_O/(K_OA + S_O) * S_ALK/(K_ALK + S_ALK)"
        " * X_AUT",
    ),
    Process("R19", "lysis_AUT", "Lysis of X_AUT", "b_AUT * X_AUT"),
    Process("R20", "precipitation", "Precipitation", "0   [not modelled]"),
    Process("R21", "redissolution", "Re-dissolution", "0   [not modelled]"),
)

N_PROCESSES = len(PROCESSES)

# Process name -> row of the rate vector and stoichiometric matrix
PROCESS_IDX = {p.process: i for i, p in enumerate(PROCESSES)}


def rate_vector(state, kinetic):
    """
    Evaluate the 21 ASM2d process rates.

    Args:
        state - ASM2d state vector (see asm2d_state.COMPONENT_LIST)
        kinetic - KineticParameters, already corrected for temperature

    Returns:
        numpy array of the rates in process order R1..R21
    """
    k = kinetic
    S_F = state[IDX["S_F"]]
    S_A = state[IDX["S_A"]]
    S_O = state[IDX["S_O"]]
    S_NO = state[IDX["S_NO"]]
    S_NH = state[IDX["S_NH"]]
    S_PO4 = state[IDX["S_PO4"]]
    S_ALK = state[IDX["S_ALK"]]
    X_S = state[IDX["X_S"]]
    X_H = state[IDX["X_H"]]
    X_AUT = state[IDX["X_AUT"]]
    X_PAO = state[IDX["X_PAO"]]
    X_PHA = state[IDX["X_PHA"]]
    X_PP = state[IDX["X_PP"]]

    rates = np.zeros(N_PROCESSES)

    alk = M(S_ALK, k.K_ALK)
    aerobic_H = M(S_O, k.K_O)
    no_oxygen_H = I(S_O, k.K_O)
    nitrate_H = M(S_NO, k.K_NO)

    # Hydrolysis, common surface limited term
    xs_ratio = safe_ratio(X_S, X_H)
    hydrolysis = k.k_h * xs_ratio / (k.K_X + xs_ratio + EPS) * X_H
    rates[0] = hydrolysis * aerobic_H
    rates[1] = hydrolysis * k.eta_H * no_oxygen_H * nitrate_H
    rates[2] = hydrolysis * k.eta_fe * no_oxygen_H * I(S_NO, k.K_NO)

    # Heterotrophs
    nutrients_H = M(S_NH, k.K_NH) * alk * X_H
    growth_SF = k.mu_H * M(S_F, k.K_S) * nutrients_H
    growth_SA = k.mu_H * M(S_A, k.K_SA) * nutrients_H
    rates[3] = growth_SF * aerobic_H
    rates[4] = growth_SA * aerobic_H
    anoxic_H = k.eta_G * no_oxygen_H * nitrate_H
    rates[5] = growth_SF * anoxic_H
    rates[6] = growth_SA * anoxic_H
    if is_anaerobic(S_O, S_NO, k.K_O, k.K_NO):
        rates[7] = (
            k.q_fe
            * M(S_F, k.K_fe)
            * no_oxygen_H
            * I(S_NO, k.K_NO)
            * alk
            * X_H
        )
    rates[8] = k.b_H * X_H

    # Phosphate accumulating organisms
    pp_ratio = safe_ratio(X_PP, X_PAO)
    pha_ratio = safe_ratio(X_PHA, X_PAO)
    rates[9] = (
        k.q_PHA
        * M(S_A, k.K_A)
        * alk
        * M(pp_ratio, k.K_PP)
        * I(S_O, k.K_O_PAO)
        * I(S_NO, k.K_NO)
        * X_PAO
    )
    pp_storage = (
        k.q_PP
        * M(S_PO4, k.K_P)
        * alk
        * M(pha_ratio, k.K_PHA)
        * saturation_inhibition(pp_ratio, k.K_MAX, k.K_IPP)
        * X_PAO
    )
    pao_growth = (
        k.mu_PAO
        * M(S_NH, k.K_NH_PAO)
        * M(S_PO4, k.K_P)
        * alk
        * M(pha_ratio, k.K_PHA)
        * X_PAO
    )
    aerobic_PAO = M(S_O, k.K_O_PAO)
    rates[10] = pp_storage * aerobic_PAO
    rates[12] = pao_growth * aerobic_PAO
    # Denitrifying PAO only act below the PAO oxygen half-saturation
    if S_O < k.K_O_PAO:
        anoxic_PAO = k.eta_NO3_PAO * I(S_O, k.K_O_PAO) * nitrate_H
        rates[11] = pp_storage * anoxic_PAO
        rates[13] = pao_growth * anoxic_PAO
    rates[14] = k.b_PAO * X_PAO
    rates[15] = k.b_PP * X_PP
    rates[16] = k.b_PHA * X_PHA

    # Autotrophs
    rates[17] = k.mu_AUT * M(S_NH, k.K_NH) * M(S_O, k.K_OA) * alk * X_AUT
    rates[18] = k.b_AUT * X_AUT

    # R20 and R21 (chemical P precipitation) are not modelled
    return rates


def calculate_process_rates(state, kinetic, stoich=None):
    """
    Evaluate the 21 ASM2d process rates as labelled records.

    Args:
        state - ASM2d state vector
        kinetic - KineticParameters, already corrected for temperature
        stoich - (optional) StoichiometricParameters, not used by the
                 biological rate expressions

    Returns:
        tuple of 21 ProcessRate records in order R1..R21
    """
    rates = rate_vector(state, kinetic)
    return tuple(
        ProcessRate(
            p.id,
            p.process,
            p.name,
            float(rate),
            p.equation,
            bool(rate > ACTIVITY_THRESHOLD),
        )
        for p, rate in zip(PROCESSES, rates)
    )


def rates_by_process(process_rates):
    """
    Return {process: rate} for a tuple of ProcessRate records.
    """
    return {pr.process: pr.rate for pr in process_rates}
