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
Multi-zone activated sludge reactor with internal and sludge recycles.

Layout (A2O shown, any ordered sequence of zones is accepted):

    influent --+--> [anaerobic] --> [anoxic] --> [aerobic] --+--> effluent
               ^                      ^              |       |
               |                      +---- IR ------+       |
               +------------------- RAS ---------------------+

The recycle network is solved by fixed-point iteration over tear streams:
every outer iteration blends the influent with return sludge taken from the
terminal zone, blends internal recycle taken from the first aerobic zone into
the feed of every anoxic zone, and solves each zone to local steady state in
series. The loop stops once no zone state changes by more than the network
tolerance between two outer iterations, or at the iteration cap.
"""
from dataclasses import dataclass, field

import numpy as np

from pyomo.common.config import (
    ConfigDict,
    ConfigValue,
    NonNegativeFloat,
    PositiveFloat,
    PositiveInt,
)

import idaes.logger as idaeslog

from sludgesim.custom_exceptions import InvalidParameterError
from sludgesim.property_models.activated_sludge.asm2d_state import blend
from sludgesim.unit_models.cstr import ReactorZone
from sludgesim.unit_models.unit_model_config_enums import ZoneType


# Set up logger
_log = idaeslog.getLogger(__name__)


CONFIG = ConfigDict()
CONFIG.declare(
    "internal_recycle",
    ConfigValue(
        default=0.0,
        domain=NonNegativeFloat,
        description="Internal (nitrate) recycle ratio to the influent flow",
    ),
)
CONFIG.declare(
    "return_sludge",
    ConfigValue(
        default=0.0,
        domain=NonNegativeFloat,
        description="Return activated sludge ratio to the influent flow",
    ),
)
CONFIG.declare(
    "influent_flow",
    ConfigValue(
        default=1000.0,
        domain=PositiveFloat,
        description="Influent flow used to derive zone retention times [m3/d]",
    ),
)
CONFIG.declare(
    "max_iterations",
    ConfigValue(
        default=100,
        domain=PositiveInt,
        description="Maximum number of outer recycle iterations",
    ),
)
CONFIG.declare(
    "tolerance",
    ConfigValue(
        default=1e-4,
        domain=PositiveFloat,
        description="Network convergence tolerance",
        doc="""Largest relative change of any zone state between two outer
iterations below which the recycle network is taken as converged.""",
    ),
)
CONFIG.declare(
    "concentration_floor",
    ConfigValue(
        default=1e-3,
        domain=PositiveFloat,
        description="Smallest concentration used to scale relative changes",
    ),
)
CONFIG.declare(
    "zone_time_step",
    ConfigValue(
        default=0.01,
        domain=PositiveFloat,
        description="Euler time step of the zone solves [d]",
    ),
)
CONFIG.declare(
    "zone_max_iterations",
    ConfigValue(
        default=1000,
        domain=PositiveInt,
        description="Euler step cap of each zone solve",
    ),
)
CONFIG.declare(
    "zone_tolerance",
    ConfigValue(
        default=1e-5,
        domain=PositiveFloat,
        description="Convergence tolerance of each zone solve",
    ),
)


@dataclass(frozen=True, eq=False)
class MultiZoneResult:
    """
    Outcome of a recycle network solve.

    Attributes:
        zone_states - {zone id: state vector} in flow order
        converged - whether the network convergence test was met
        iterations - outer iterations performed
        max_change - largest relative zone state change in the last iteration
        zone_results - {zone id: last Converged/MaxIterationsReached}
    """

    zone_states: dict
    converged: bool
    iterations: int
    max_change: float
    zone_results: dict = field(default_factory=dict)

    @property
    def terminal_state(self):
        return next(reversed(self.zone_states.values()))


def build_zones(zone_data, initial_states=None):
    """
    Create reactor zones from a list of zone dicts (reactor preset format).

    Args:
        zone_data - iterable of dicts with id, name, zone_type, volume and
                    optional hrt / do_setpoint
        initial_states - (optional) {zone id: state vector}

    Returns:
        list of ReactorZone in flow order
    """
    if initial_states is None:
        initial_states = {}
    zones = [
        ReactorZone.from_dict(data, initial_state=initial_states.get(data.get("id")))
        for data in zone_data
    ]
    check_zones(zones)
    return zones


def check_zones(zones):
    if not zones:
        raise InvalidParameterError("At least one reactor zone is required.")
    ids = [z.id for z in zones]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        raise InvalidParameterError(
            f"Reactor zone ids must be unique, found duplicates "
            f"{', '.join(duplicates)}."
        )


def _max_relative_change(zones, previous, floor):
    return max(
        float(
            np.max(
                np.abs(z.state - previous[z.id])
                / np.maximum(np.abs(previous[z.id]), floor)
            )
        )
        for z in zones
    )


def simulate_multi_zone(zones, influent, model, **options):
    """
    Solve a series of reactor zones coupled by internal and sludge recycles.

    The zones are solved in place: each zone keeps its final state and
    status.

    Args:
        zones - ordered list of ReactorZone, the last zone feeds the clarifier
        influent - ASM2d state vector of the plant influent
        model - ASM2dModel
        options - CONFIG values (recycle ratios, influent flow, caps and
                  tolerances)

    Returns:
        MultiZoneResult
    """
    config = CONFIG(options)
    check_zones(zones)
    influent = np.asarray(influent, dtype=float)

    ras_fraction = config.return_sludge / (1 + config.return_sludge)
    ir_fraction = config.internal_recycle / (1 + config.internal_recycle)
    terminal = zones[-1]
    aerobic = next((z for z in zones if z.zone_type is ZoneType.aerobic), None)
    if config.internal_recycle > 0 and aerobic is None:
        _log.warning(
            "Internal recycle requested but no aerobic zone to draw it from; "
            "internal recycle ignored."
        )

    zone_options = dict(
        time_step=config.zone_time_step,
        max_iterations=config.zone_max_iterations,
        tolerance=config.zone_tolerance,
    )

    converged = False
    max_change = float("inf")
    iteration = 0
    for iteration in range(1, config.max_iterations + 1):
        previous = {z.id: z.state.copy() for z in zones}

        feed = blend(influent, terminal.state, ras_fraction)
        for zone in zones:
            if (
                zone.zone_type is ZoneType.anoxic
                and config.internal_recycle > 0
                and aerobic is not None
            ):
                feed = blend(feed, aerobic.state, ir_fraction)
            zone.solve(feed, model, config.influent_flow, **zone_options)
            feed = zone.state

        max_change = _max_relative_change(
            zones, previous, config.concentration_floor
        )
        _log.debug(
            f"Recycle iteration {iteration}: max relative change {max_change:.3e}"
        )
        if max_change < config.tolerance:
            converged = True
            break

    if converged:
        _log.info(f"Recycle network converged in {iteration} iterations")
    else:
        _log.warning(
            f"Recycle network did not converge in {config.max_iterations} "
            f"iterations (max relative change {max_change:.3e})"
        )

    return MultiZoneResult(
        zone_states={z.id: z.state.copy() for z in zones},
        converged=converged,
        iterations=iteration,
        max_change=max_change,
        zone_results={z.id: z.status for z in zones},
    )
