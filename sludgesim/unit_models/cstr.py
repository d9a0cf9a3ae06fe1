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
Continuous stirred tank reactor zone for ASM2d activated sludge modeling.

A zone is one completely mixed compartment of the biological reactor. Its
state is advanced to steady state by explicit Euler integration of the CSTR
mass balance

    dC/dt = matrix.T @ rates(C) + (C_in - C) / HRT

with dissolved oxygen driven towards the zone setpoint instead of the
influent oxygen (aeration is represented as a flow term, not through kLa).
"""
from dataclasses import dataclass

import numpy as np

from pyomo.common.config import (
    ConfigDict,
    ConfigValue,
    InEnum,
    NonNegativeFloat,
    PositiveFloat,
    PositiveInt,
)

import idaes.logger as idaeslog

from sludgesim.custom_exceptions import InvalidParameterError
from sludgesim.property_models.activated_sludge.asm2d_state import (
    IDX,
    clamp,
    default_initial_state,
)
from sludgesim.unit_models.unit_model_config_enums import ZoneType


# Set up logger
_log = idaeslog.getLogger(__name__)

HOURS_PER_DAY = 24
DEFAULT_DO_SETPOINT = 2.0

_S_O = IDX["S_O"]


@dataclass(frozen=True, eq=False)
class Converged:
    """Steady state reached within tolerance"""

    state: np.ndarray
    iterations: int
    max_change: float

    converged = True


@dataclass(frozen=True, eq=False)
class MaxIterationsReached:
    """Iteration cap hit before the state settled"""

    state: np.ndarray
    iterations: int
    max_change: float

    converged = False


STEADY_STATE_CONFIG = ConfigDict()
STEADY_STATE_CONFIG.declare(
    "time_step",
    ConfigValue(
        default=0.01,
        domain=PositiveFloat,
        description="Euler time step [d]",
    ),
)
STEADY_STATE_CONFIG.declare(
    "max_iterations",
    ConfigValue(
        default=10000,
        domain=PositiveInt,
        description="Maximum number of Euler steps",
    ),
)
STEADY_STATE_CONFIG.declare(
    "tolerance",
    ConfigValue(
        default=1e-6,
        domain=PositiveFloat,
        description="Convergence tolerance on the relative state change",
        doc="""Largest relative change of any component between two
convergence checks below which the state is taken as steady.""",
    ),
)
STEADY_STATE_CONFIG.declare(
    "check_interval",
    ConfigValue(
        default=100,
        domain=PositiveInt,
        description="Number of Euler steps between convergence checks",
    ),
)
STEADY_STATE_CONFIG.declare(
    "concentration_floor",
    ConfigValue(
        default=1e-3,
        domain=PositiveFloat,
        description="Smallest concentration used to scale relative changes",
        doc="""Components below this concentration are compared on an
absolute basis, so that components decaying towards zero can still be
recognised as settled.""",
    ),
)


def batch_derivatives(state, model):
    """
    Rate of change of a closed (batch) reactor, dC/dt = matrix.T @ rates.

    Args:
        state - ASM2d state vector
        model - ASM2dModel

    Returns:
        numpy array of derivatives in g/(m3.d)
    """
    return model.reaction_derivatives(state)


def cstr_derivatives(
    state,
    influent,
    hrt,
    model,
    zone_type=ZoneType.aerobic,
    do_setpoint=DEFAULT_DO_SETPOINT,
):
    """
    Rate of change of a CSTR zone.

    Args:
        state - ASM2d state vector of the zone
        influent - ASM2d state vector of the zone feed
        hrt - hydraulic retention time [h]
        model - ASM2dModel
        zone_type - ZoneType; only aerobic zones are aerated
        do_setpoint - dissolved oxygen setpoint of aerobic zones [g O2/m3]

    Returns:
        numpy array of derivatives in g/(m3.d)
    """
    hrt_days = hrt / HOURS_PER_DAY
    flow = (influent - state) / hrt_days

    # Oxygen is held towards the zone target rather than fed with the influent
    target = do_setpoint if zone_type is ZoneType.aerobic else 0.0
    flow[_S_O] = (target - state[_S_O]) / hrt_days

    return model.reaction_derivatives(state) + flow


def solve_steady_state(
    influent,
    hrt,
    model,
    initial_state=None,
    zone_type=ZoneType.aerobic,
    do_setpoint=DEFAULT_DO_SETPOINT,
    **options,
):
    """
    March a CSTR zone to steady state with explicit Euler steps.

    Every step is clamped to non-negative concentrations. Every
    ``check_interval`` steps the largest relative change since the previous
    check is compared with ``tolerance``.

    Args:
        influent - ASM2d state vector of the zone feed
        hrt - hydraulic retention time [h]
        model - ASM2dModel
        initial_state - (optional) starting state, packaged default if None
        zone_type - ZoneType
        do_setpoint - dissolved oxygen setpoint of aerobic zones [g O2/m3]
        options - STEADY_STATE_CONFIG values

    Returns:
        Converged or MaxIterationsReached; non-convergence never raises
    """
    config = STEADY_STATE_CONFIG(options)
    if not hrt > 0:
        raise InvalidParameterError(
            f"Hydraulic retention time must be positive, got {hrt}."
        )

    if initial_state is None:
        state = default_initial_state()
    else:
        state = clamp(initial_state)
    influent = np.asarray(influent, dtype=float)
    previous = state.copy()
    dt = config.time_step
    max_change = float("inf")

    for step in range(1, config.max_iterations + 1):
        derivatives = cstr_derivatives(
            state, influent, hrt, model, zone_type, do_setpoint
        )
        state = np.maximum(state + derivatives * dt, 0.0)

        if step % config.check_interval == 0:
            scale = np.maximum(np.abs(previous), config.concentration_floor)
            max_change = float(np.max(np.abs(state - previous) / scale))
            _log.debug(f"Step {step}: max relative change {max_change:.3e}")
            if max_change < config.tolerance:
                return Converged(state, step, max_change)
            previous = state.copy()

    _log.debug(
        f"Zone solve stopped at {config.max_iterations} steps, max relative "
        f"change {max_change:.3e}"
    )
    return MaxIterationsReached(state, config.max_iterations, max_change)


class ReactorZone:
    """
    One completely mixed zone of a biological reactor.

    The zone carries its own state vector, which is replaced by the result
    of every ``solve`` call.
    """

    CONFIG = ConfigDict()

    CONFIG.declare(
        "id",
        ConfigValue(
            default=None,
            domain=str,
            description="Unique zone identifier",
        ),
    )
    CONFIG.declare(
        "name",
        ConfigValue(
            default=None,
            domain=str,
            description="Display name, defaults to the identifier",
        ),
    )
    CONFIG.declare(
        "zone_type",
        ConfigValue(
            default=ZoneType.aerobic,
            domain=InEnum(ZoneType),
            description="Zone type",
            doc="""Redox condition of the zone,
**default** - ZoneType.aerobic.
**Valid values:** {
**ZoneType.anaerobic** - no aeration and no nitrate recycle,
**ZoneType.anoxic** - receives the internal nitrate recycle,
**ZoneType.aerobic** - aerated to the dissolved oxygen setpoint}""",
        ),
    )
    CONFIG.declare(
        "volume",
        ConfigValue(
            default=None,
            domain=PositiveFloat,
            description="Zone volume [m3]",
        ),
    )
    CONFIG.declare(
        "hrt",
        ConfigValue(
            default=None,
            domain=PositiveFloat,
            description="Hydraulic retention time [h]",
            doc="""Explicit retention time. If not given it is derived from the
volume and the plant influent flow.""",
        ),
    )
    CONFIG.declare(
        "do_setpoint",
        ConfigValue(
            default=None,
            domain=NonNegativeFloat,
            description="Dissolved oxygen setpoint [g O2/m3]",
            doc="""Only used by aerobic zones, which default to 2 g O2/m3.""",
        ),
    )

    def __init__(self, initial_state=None, **options):
        try:
            self.config = self.CONFIG(options)
        except ValueError as err:
            raise InvalidParameterError(str(err)) from err

        if not self.config.id:
            raise InvalidParameterError("Reactor zones require an id.")
        if self.config.volume is None and self.config.hrt is None:
            raise InvalidParameterError(
                f"Zone {self.config.id} needs a volume or a hydraulic "
                f"retention time."
            )

        if initial_state is None:
            self.state = default_initial_state()
        else:
            self.state = clamp(initial_state)
        self.status = None

    @classmethod
    def from_dict(cls, data, initial_state=None):
        """Build a zone from a reactor preset entry"""
        return cls(initial_state=initial_state, **data)

    @property
    def id(self):
        return self.config.id

    @property
    def name(self):
        # ConfigDict.name is the block name() method, use item access
        return self.config["name"] or self.config.id

    @property
    def zone_type(self):
        return self.config.zone_type

    @property
    def volume(self):
        return self.config.volume

    @property
    def do_setpoint(self):
        if self.zone_type is not ZoneType.aerobic:
            return 0.0
        if self.config.do_setpoint is None:
            return DEFAULT_DO_SETPOINT
        return self.config.do_setpoint

    def hydraulic_retention_time(self, influent_flow):
        """
        Retention time in hours, the explicit HRT if one was configured or
        volume / flow otherwise.

        Args:
            influent_flow - flow through the zone [m3/d]
        """
        if self.config.hrt is not None:
            return self.config.hrt
        if not influent_flow > 0:
            raise InvalidParameterError(
                f"Influent flow must be positive to derive the retention "
                f"time of zone {self.id}, got {influent_flow}."
            )
        return self.volume / (influent_flow / HOURS_PER_DAY)

    def derivatives(self, influent, model, influent_flow):
        """CSTR derivatives at the current zone state"""
        return cstr_derivatives(
            self.state,
            influent,
            self.hydraulic_retention_time(influent_flow),
            model,
            self.zone_type,
            self.do_setpoint,
        )

    def solve(self, influent, model, influent_flow, **options):
        """
        Solve the zone to steady state starting from its current state.

        Returns:
            Converged or MaxIterationsReached; the zone state and status are
            updated with the result
        """
        result = solve_steady_state(
            influent,
            self.hydraulic_retention_time(influent_flow),
            model,
            initial_state=self.state,
            zone_type=self.zone_type,
            do_setpoint=self.do_setpoint,
            **options,
        )
        self.state = result.state
        self.status = result
        return result
