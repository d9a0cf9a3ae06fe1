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
Temperature corrected ASM2d kinetics bundled with the stoichiometric matrix.

An ASM2dModel is built once per simulation run and passed explicitly to
every derivative evaluation. It is immutable, so independent runs with
different parameter sets can share nothing but the defaults.
"""
from dataclasses import dataclass, field

import numpy as np

import idaes.logger as idaeslog

from sludgesim.property_models.activated_sludge.asm2d_parameters import (
    KineticParameters,
    StoichiometricParameters,
    TemperatureCoefficients,
    correct_temperature,
)
from sludgesim.property_models.activated_sludge.asm2d_reactions import (
    rate_vector,
    calculate_process_rates,
)
from sludgesim.property_models.activated_sludge.asm2d_stoichiometry import (
    build_stoichiometric_matrix,
)


# Set up logger
_log = idaeslog.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ASM2dModel:
    """
    Kinetics at the reactor temperature plus the matching stoichiometry.

    Attributes:
        kinetic - KineticParameters corrected to ``temperature``
        stoich - StoichiometricParameters
        matrix - read only 21 x 19 stoichiometric matrix
        temperature - reactor temperature in C
    """

    kinetic: KineticParameters
    stoich: StoichiometricParameters
    matrix: np.ndarray = field(repr=False)
    temperature: float = 20.0

    @classmethod
    def build(cls, kinetic=None, stoich=None, coefficients=None, temperature=20.0):
        """
        Correct the kinetics for temperature and build the matrix.

        Args:
            kinetic - (optional) KineticParameters at 20 C
            stoich - (optional) StoichiometricParameters
            coefficients - (optional) TemperatureCoefficients
            temperature - reactor temperature in C

        Returns:
            a new ASM2dModel; defaults are used for omitted parameter sets
        """
        if kinetic is None:
            kinetic = KineticParameters.default()
        if stoich is None:
            stoich = StoichiometricParameters.default()
        if coefficients is None:
            coefficients = TemperatureCoefficients.default()

        matrix = build_stoichiometric_matrix(stoich)
        matrix.setflags(write=False)

        _log.debug(f"Built ASM2d model at {temperature} C")
        return cls(
            kinetic=correct_temperature(kinetic, temperature, coefficients),
            stoich=stoich,
            matrix=matrix,
            temperature=float(temperature),
        )

    def rates(self, state):
        """Process rates R1..R21 as an array"""
        return rate_vector(state, self.kinetic)

    def process_rates(self, state):
        """Process rates R1..R21 as ProcessRate records"""
        return calculate_process_rates(state, self.kinetic, self.stoich)

    def reaction_derivatives(self, state):
        """
        Net production of every component by the biological processes,
        dC/dt = matrix.T @ rates.
        """
        return self.matrix.T @ self.rates(state)
