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
Influent fractionation.

Splits a conventional influent analysis (COD, TKN, TP, ...) into the 19
ASM2d state variables using COD, nitrogen and phosphorus fraction sets from
the parameter database.
"""
from dataclasses import dataclass
from typing import Optional

import idaes.logger as idaeslog

from sludgesim.core.parameter_database import ParameterDatabase
from sludgesim.custom_exceptions import InvalidParameterError
from sludgesim.property_models.activated_sludge.asm2d_state import state_from_dict


# Set up logger
_log = idaeslog.getLogger(__name__)

# mg CaCO3/L per mol HCO3/m3 (equivalent weight of CaCO3)
CACO3_PER_HCO3 = 50.0

_FRACTION_TOLERANCE = 1e-6


@dataclass(frozen=True)
class ConventionalInfluent:
    """
    Influent characterised by routine laboratory analyses.

    Concentrations in mg/L (COD and VFA as COD, nitrogen as N, phosphorus as
    P, alkalinity as CaCO3), flow in m3/d.
    """

    flow_rate: float
    COD: float
    BOD5: float
    TSS: float
    VSS: float
    TKN: float
    NH4N: float
    TP: float
    PO4P: float
    alkalinity: float
    VFA: Optional[float] = None

    def __post_init__(self):
        for name in (
            "flow_rate",
            "COD",
            "BOD5",
            "TSS",
            "VSS",
            "TKN",
            "NH4N",
            "TP",
            "PO4P",
            "alkalinity",
        ):
            if getattr(self, name) < 0:
                raise InvalidParameterError(
                    f"Influent {name} must be non-negative, got "
                    f"{getattr(self, name)}."
                )
        if self.VFA is not None and self.VFA < 0:
            raise InvalidParameterError(
                f"Influent VFA must be non-negative, got {self.VFA}."
            )
        if self.NH4N > self.TKN:
            raise InvalidParameterError(
                f"Influent NH4N ({self.NH4N}) can not exceed TKN ({self.TKN})."
            )

    @classmethod
    def typical_domestic(cls):
        """Medium strength domestic sewage at 1000 m3/d"""
        return cls(
            flow_rate=1000.0,
            COD=400.0,
            BOD5=200.0,
            TSS=220.0,
            VSS=180.0,
            TKN=40.0,
            NH4N=25.0,
            TP=8.0,
            PO4P=5.0,
            alkalinity=250.0,
        )


def get_fractions(subtype=None, database=None):
    """
    Read and check a fraction set from the parameter database.

    Returns:
        dict with "cod", "nitrogen" and "phosphorus" fraction dicts

    Raises:
        InvalidParameterError if a fraction is negative or the COD fractions
        do not add up to 1
    """
    if database is None:
        database = ParameterDatabase()
    fractions = database.get_parameters("influent_fractions", subtype)
    check_fractions(fractions)
    return fractions


def check_fractions(fractions):
    for group, values in fractions.items():
        for name, value in values.items():
            if value < 0:
                raise InvalidParameterError(
                    f"Fraction {name} of group {group} must be non-negative, "
                    f"got {value}."
                )
    total = sum(fractions["cod"].values())
    if abs(total - 1) > _FRACTION_TOLERANCE:
        raise InvalidParameterError(
            f"COD fractions must add up to 1, got {total}."
        )
    if fractions["nitrogen"]["f_SND"] + fractions["nitrogen"]["f_XND"] <= 0:
        raise InvalidParameterError(
            "At least one of the organic nitrogen fractions f_SND and f_XND "
            "must be positive."
        )


def fractionate_influent(influent, fractions=None):
    """
    Convert a conventional influent into an ASM2d state vector.

    Measured VFA replaces the default acetate fraction and is taken out of
    the readily biodegradable COD. Influent oxygen, nitrate and biomass are
    taken as 0.

    Args:
        influent - ConventionalInfluent
        fractions - (optional) fraction set as returned by get_fractions

    Returns:
        ASM2d state vector
    """
    if fractions is None:
        fractions = get_fractions()
    else:
        check_fractions(fractions)
    cod = fractions["cod"]
    nitrogen = fractions["nitrogen"]
    phosphorus = fractions["phosphorus"]

    readily_biodegradable = influent.COD * (cod["f_SF"] + cod["f_SA"])
    if influent.VFA is None:
        S_A = influent.COD * cod["f_SA"]
    else:
        S_A = min(influent.VFA, readily_biodegradable)
        if influent.VFA > readily_biodegradable:
            _log.warning(
                f"Measured VFA ({influent.VFA} mg COD/L) exceeds the readily "
                f"biodegradable COD ({readily_biodegradable} mg COD/L); "
                f"VFA limited to the readily biodegradable fraction."
            )
    S_F = readily_biodegradable - S_A

    organic_N = influent.TKN - influent.NH4N
    organic_split = nitrogen["f_SND"] + nitrogen["f_XND"]

    if influent.PO4P > 0:
        S_PO4 = influent.PO4P
    else:
        S_PO4 = influent.TP * phosphorus["f_SPO4"]

    return state_from_dict(
        {
            "S_I": influent.COD * cod["f_SI"],
            "S_F": S_F,
            "S_A": S_A,
            "S_NH": influent.NH4N,
            "S_ND": organic_N * nitrogen["f_SND"] / organic_split,
            "S_PO4": S_PO4,
            "S_ALK": influent.alkalinity / CACO3_PER_HCO3,
            "X_I": influent.COD * cod["f_XI"],
            "X_S": influent.COD * cod["f_XS"],
            "X_ND": organic_N * nitrogen["f_XND"] / organic_split,
        }
    )
