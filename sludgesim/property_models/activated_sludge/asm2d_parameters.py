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
Kinetic, stoichiometric and temperature coefficient parameter sets for ASM2d.

Parameter sets are immutable. Default values are read from the packaged
parameter database once and shared; modified sets are created with
``with_updates``, which never touches the original.

Reference:

[1] Henze, M., Gujer, W., Mino, T., Matsuo, T., Wentzel, M.C., Marais, G.v.R.,
Van Loosdrecht, M.C.M., "Activated Sludge Model No.2D, ASM2D", 1999,
Wat. Sci. Tech. Vol. 39, No. 1, pp. 165-182
"""

import dataclasses
import functools
import math
from dataclasses import dataclass

import idaes.logger as idaeslog

from sludgesim.core.parameter_database import ParameterDatabase
from sludgesim.custom_exceptions import InvalidParameterError


# Set up logger
_log = idaeslog.getLogger(__name__)


class _ParameterSet:
    """Shared behaviour of the frozen parameter dataclasses"""

    _database_group = None

    @classmethod
    def from_database(cls, database=None, subtype=None):
        """
        Build a parameter set from a database group.

        Args:
            database - (optional) ParameterDatabase to read from
            subtype - (optional) subtype or list of subtypes to merge over
                      the defaults

        Returns:
            a new parameter set
        """
        if database is None:
            database = ParameterDatabase()
        values = database.get_parameters(cls._database_group, subtype)
        names = {f.name for f in dataclasses.fields(cls)}
        missing = names - set(values)
        if missing:
            raise KeyError(
                f"Database group {cls._database_group} is missing "
                f"{', '.join(sorted(missing))}."
            )
        return cls(**{k: float(v) for k, v in values.items() if k in names})

    @classmethod
    def default(cls):
        """Return the shared default parameter set"""
        return _default_set(cls)

    def with_updates(self, value_map):
        """
        Return a copy with the given parameters replaced.

        Raises:
            InvalidParameterError for unrecognised names or non-finite values
        """
        names = {f.name for f in dataclasses.fields(self)}
        new_values = {}
        for key, value in value_map.items():
            if key not in names:
                raise InvalidParameterError(
                    f"Unrecognized {type(self).__name__} attribute {key}"
                )
            try:
                new_values[key] = float(value)
            except (TypeError, ValueError):
                raise InvalidParameterError(f"{key} must be a number, got {value!r}")
            if not math.isfinite(new_values[key]):
                raise InvalidParameterError(f"{key} must be a finite number")
        return dataclasses.replace(self, **new_values)

    def to_dict(self):
        return dataclasses.asdict(self)


@functools.lru_cache(maxsize=None)
def _default_set(cls):
    _log.debug(f"Loading default {cls.__name__} from parameter database")
    return cls.from_database()


@dataclass(frozen=True)
class KineticParameters(_ParameterSet):
    """
    ASM2d kinetic parameters. Rates are per day at 20 C, half-saturation
    constants in g/m3 except K_ALK (mol HCO3/m3).
    """

    _database_group = "kinetic_parameters"

    # hydrolysis
    k_h: float
    eta_H: float
    eta_fe: float
    K_X: float
    # heterotrophs
    mu_H: float
    eta_G: float
    b_H: float
    K_S: float
    K_SA: float
    K_O: float
    K_NO: float
    K_NH: float
    K_ALK: float
    q_fe: float
    K_fe: float
    # phosphate accumulating organisms
    q_PHA: float
    q_PP: float
    mu_PAO: float
    b_PAO: float
    b_PP: float
    b_PHA: float
    K_A: float
    K_P: float
    K_PP: float
    K_PHA: float
    K_MAX: float
    K_IPP: float
    K_NH_PAO: float
    K_O_PAO: float
    eta_NO3_PAO: float
    # autotrophs
    mu_AUT: float
    b_AUT: float
    K_OA: float
    # chemical precipitation, not used by the biological rates
    k_PRE: float
    k_RED: float


@dataclass(frozen=True)
class StoichiometricParameters(_ParameterSet):
    """
    ASM2d yields and composition parameters.
    """

    _database_group = "stoichiometric_parameters"

    Y_H: float
    Y_AUT: float
    Y_PAO: float
    Y_PO4: float
    Y_PHA: float
    f_XI: float
    f_SI: float
    i_XB: float
    i_XP: float
    i_PB: float
    i_PP: float
    i_NXS: float


@dataclass(frozen=True)
class TemperatureCoefficients(_ParameterSet):
    """
    Arrhenius theta values per kinetic group.
    """

    _database_group = "temperature_coefficients"

    theta_mu_H: float
    theta_b_H: float
    theta_q_PHA: float
    theta_q_PP: float
    theta_mu_PAO: float
    theta_b_PAO: float
    theta_mu_AUT: float
    theta_b_AUT: float
    theta_k_h: float
    theta_q_fe: float


# Thermally sensitive kinetic constant -> coefficient that corrects it
THERMAL_COEFFICIENT_MAP = {
    "mu_H": "theta_mu_H",
    "b_H": "theta_b_H",
    "q_PHA": "theta_q_PHA",
    "q_PP": "theta_q_PP",
    "mu_PAO": "theta_mu_PAO",
    "b_PAO": "theta_b_PAO",
    "b_PP": "theta_b_PAO",
    "b_PHA": "theta_b_PAO",
    "mu_AUT": "theta_mu_AUT",
    "b_AUT": "theta_b_AUT",
    "k_h": "theta_k_h",
    "q_fe": "theta_q_fe",
}


def correct_temperature(kinetic, temperature, coefficients=None):
    """
    Arrhenius correction of the kinetic parameters from 20 C.

    Args:
        kinetic - KineticParameters at 20 C
        temperature - reactor temperature in C
        coefficients - (optional) TemperatureCoefficients, defaults used if
                       not provided

    Returns:
        a new KineticParameters with every thermally sensitive constant
        multiplied by theta ** (temperature - 20); all other constants are
        passed through unchanged
    """
    if coefficients is None:
        coefficients = TemperatureCoefficients.default()

    dT = temperature - 20
    corrected = {
        name: getattr(kinetic, name) * getattr(coefficients, theta) ** dT
        for name, theta in THERMAL_COEFFICIENT_MAP.items()
    }
    return dataclasses.replace(kinetic, **corrected)
