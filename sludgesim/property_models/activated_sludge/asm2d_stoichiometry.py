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
ASM2d stoichiometric (Petersen) matrix.

Rows are the 21 processes of asm2d_reactions.PROCESSES, columns the 19
components of asm2d_state.COMPONENT_LIST. Coefficients are per unit of the
process rate. Every row conserves COD, nitrogen, phosphorus and charge; the
alkalinity coefficient of each row closes the charge balance.

Conversion factors:
    14 g N/mol, 31 g P/mol, 64 g COD/mol acetate
    64/14 g O2/g N to oxidise ammonium to nitrate
    40/14 g O2/g N of nitrate reduced to dinitrogen
"""
import numpy as np

import idaes.logger as idaeslog

from sludgesim.property_models.activated_sludge.asm2d_state import (
    IDX,
    N_COMPONENTS,
)
from sludgesim.property_models.activated_sludge.asm2d_reactions import (
    PROCESSES,
    N_PROCESSES,
)


# Set up logger
_log = idaeslog.getLogger(__name__)

MW_N = 14
MW_P = 31
COD_ACETATE = 64
COD_NITRATE = 64 / MW_N
COD_N2 = 24 / MW_N
# Electron acceptor capacity of nitrate reduced to N2, g COD/g N
DENITRIFICATION_COD = COD_NITRATE - COD_N2

CONSERVED_QUANTITIES = ("COD", "N", "P", "charge")


def composition_matrix(stoich):
    """
    Conservation matrix of the ASM2d components.

    Returns:
        19 x 4 array holding the COD (g), nitrogen (g), phosphorus (g) and
        charge (mol) carried by one unit of each component
    """
    comp = np.zeros((N_COMPONENTS, len(CONSERVED_QUANTITIES)))

    def set_row(name, cod=0.0, n=0.0, p=0.0, charge=0.0):
        comp[IDX[name]] = (cod, n, p, charge)

    set_row("S_I", cod=1)
    set_row("S_F", cod=1)
    set_row("S_A", cod=1, charge=-1 / COD_ACETATE)
    set_row("S_O", cod=-1)
    set_row("S_NO", cod=-COD_NITRATE, n=1, charge=-1 / MW_N)
    set_row("S_NH", n=1, charge=1 / MW_N)
    set_row("S_ND", n=1)
    set_row("S_PO4", p=1, charge=-1.5 / MW_P)
    set_row("S_ALK", charge=-1)
    set_row("X_I", cod=1)
    set_row("X_S", cod=1)
    for biomass in ("X_H", "X_AUT", "X_PAO"):
        set_row(biomass, cod=1, n=stoich.i_XB, p=stoich.i_PB)
    set_row("X_PHA", cod=1)
    set_row("X_PP", p=1, charge=-1 / MW_P)
    set_row("X_P", cod=1, n=stoich.i_XP, p=stoich.i_PP)
    set_row("X_ND", n=1)
    set_row("S_N2", cod=-COD_N2, n=1)
    return comp


def _process_coefficients(stoich):
    """
    Stoichiometric coefficients of every process except alkalinity, as
    {process id: {component: coefficient}}.
    """
    s = stoich

    def hydrolysis():
        return {
            "X_S": -1,
            "S_F": 1 - s.f_SI,
            "S_I": s.f_SI,
            "X_ND": -s.i_NXS,
            "S_ND": s.i_NXS,
        }

    def aerobic_growth_H(substrate):
        return {
            substrate: -1 / s.Y_H,
            "X_H": 1,
            "S_O": -(1 - s.Y_H) / s.Y_H,
            "S_NH": -s.i_XB,
            "S_PO4": -s.i_PB,
        }

    def anoxic_growth_H(substrate):
        nitrate = (1 - s.Y_H) / (DENITRIFICATION_COD * s.Y_H)
        return {
            substrate: -1 / s.Y_H,
            "X_H": 1,
            "S_NO": -nitrate,
            "S_N2": nitrate,
            "S_NH": -s.i_XB,
            "S_PO4": -s.i_PB,
        }

    def lysis(biomass):
        return {
            biomass: -1,
            "X_P": s.f_XI,
            "X_S": 1 - s.f_XI,
            "X_ND": s.i_XB - s.f_XI * s.i_XP,
            "S_PO4": s.i_PB - s.f_XI * s.i_PP,
        }

    pao_nitrate = (1 - s.Y_PAO) / (DENITRIFICATION_COD * s.Y_PAO)

    return {
        "R1": hydrolysis(),
        "R2": hydrolysis(),
        "R3": hydrolysis(),
        "R4": aerobic_growth_H("S_F"),
        "R5": aerobic_growth_H("S_A"),
        "R6": anoxic_growth_H("S_F"),
        "R7": anoxic_growth_H("S_A"),
        "R8": {"S_F": -1, "S_A": 1},
        "R9": lysis("X_H"),
        "R10": {
            "S_A": -1,
            "X_PHA": 1,
            "X_PP": -s.Y_PO4,
            "S_PO4": s.Y_PO4,
        },
        "R11": {
            "S_PO4": -1,
            "X_PP": 1,
            "X_PHA": -s.Y_PHA,
            "S_O": -s.Y_PHA,
        },
        "R12": {
            "S_PO4": -1,
            "X_PP": 1,
            "X_PHA": -s.Y_PHA,
            "S_NO": -s.Y_PHA / DENITRIFICATION_COD,
            "S_N2": s.Y_PHA / DENITRIFICATION_COD,
        },
        "R13": {
            "X_PAO": 1,
            "X_PHA": -1 / s.Y_PAO,
            "S_O": -(1 - s.Y_PAO) / s.Y_PAO,
            "S_NH": -s.i_XB,
            "S_PO4": -s.i_PB,
        },
        "R14": {
            "X_PAO": 1,
            "X_PHA": -1 / s.Y_PAO,
            "S_NO": -pao_nitrate,
            "S_N2": pao_nitrate,
            "S_NH": -s.i_XB,
            "S_PO4": -s.i_PB,
        },
        "R15": lysis("X_PAO"),
        "R16": {"X_PP": -1, "S_PO4": 1},
        "R17": {"X_PHA": -1, "S_A": 1},
        "R18": {
            "X_AUT": 1,
            "S_NO": 1 / s.Y_AUT,
            "S_NH": -s.i_XB - 1 / s.Y_AUT,
            "S_O": 1 - COD_NITRATE / s.Y_AUT,
            "S_PO4": -s.i_PB,
        },
        "R19": lysis("X_AUT"),
        # Chemical precipitation is not modelled
        "R20": {},
        "R21": {},
    }


def build_stoichiometric_matrix(stoich):
    """
    Build the ASM2d stoichiometric matrix.

    Args:
        stoich - StoichiometricParameters

    Returns:
        a new 21 x 19 numpy array, rows in process order R1..R21 and columns
        in component order
    """
    coefficients = _process_coefficients(stoich)
    charge = composition_matrix(stoich)[:, CONSERVED_QUANTITIES.index("charge")]

    matrix = np.zeros((N_PROCESSES, N_COMPONENTS))
    for row, process in enumerate(PROCESSES):
        for component, value in coefficients[process.id].items():
            matrix[row, IDX[component]] = value
        # Alkalinity (charge -1 per mol) takes up the charge of the other products
        matrix[row, IDX["S_ALK"]] = matrix[row] @ charge

    _log.debug(
        f"Built {N_PROCESSES} x {N_COMPONENTS} ASM2d stoichiometric matrix "
        f"(Y_H={stoich.Y_H}, Y_AUT={stoich.Y_AUT}, Y_PAO={stoich.Y_PAO})"
    )
    return matrix


def continuity_residuals(matrix, stoich):
    """
    Conservation residuals of a stoichiometric matrix.

    Returns:
        21 x 4 array of the net COD, nitrogen, phosphorus and charge produced
        per unit of each process rate; all entries are ~0 for a valid matrix
    """
    return matrix @ composition_matrix(stoich)