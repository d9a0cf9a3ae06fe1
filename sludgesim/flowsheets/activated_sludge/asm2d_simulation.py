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
ASM2d plant simulation.

``run_simulation`` fractionates the influent, corrects the kinetics for the
reactor temperature, builds the model once and then either solves the
multi-zone recycle network to steady state or integrates a single aerated
CSTR over time. The final state is post-processed into effluent quality,
removal, PAO, sludge, oxygen and phosphorus metrics.
"""
import time
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from pyomo.common.config import (
    ConfigDict,
    ConfigValue,
    In,
    InEnum,
    NonNegativeFloat,
    PositiveFloat,
    PositiveInt,
)

import idaes.logger as idaeslog

from sludgesim.core.parameter_database import ParameterDatabase
from sludgesim.custom_exceptions import InvalidParameterError
from sludgesim.flowsheets.activated_sludge.asm2d_metrics import (
    DEFAULT_CLARIFIER_EFFICIENCY,
    effluent_quality,
    removal_performance,
    pao_metrics,
    sludge_production,
    oxygen_demand,
    phosphorus_balance,
)
from sludgesim.flowsheets.activated_sludge.multi_zone import (
    build_zones,
    simulate_multi_zone,
)
from sludgesim.property_models.activated_sludge.asm2d_model import ASM2dModel
from sludgesim.property_models.activated_sludge.asm2d_state import (
    COMPONENT_LIST,
    clamp,
    default_initial_state,
    state_from_dict,
)
from sludgesim.property_models.activated_sludge.influent_fractionation import (
    ConventionalInfluent,
    fractionate_influent,
    get_fractions,
)
from sludgesim.tools.ode_integrator import METHODS, create_integrator
from sludgesim.unit_models.cstr import (
    DEFAULT_DO_SETPOINT,
    HOURS_PER_DAY,
    cstr_derivatives,
)
from sludgesim.unit_models.unit_model_config_enums import SimulationMode, ZoneType


# Set up logger
_log = idaeslog.getLogger(__name__)


SIMULATION_CONFIG = ConfigDict()
SIMULATION_CONFIG.declare(
    "mode",
    ConfigValue(
        default=SimulationMode.steady_state,
        domain=InEnum(SimulationMode),
        description="Simulation mode",
        doc="""Whether to solve the zone network or integrate over time,
**default** - SimulationMode.steady_state.
**Valid values:** {
**SimulationMode.steady_state** - multi-zone recycle network to steady state,
**SimulationMode.dynamic** - single aerated CSTR integrated over time}""",
    ),
)
SIMULATION_CONFIG.declare(
    "start_time",
    ConfigValue(
        default=0.0,
        domain=NonNegativeFloat,
        description="Start time of a dynamic run [d]",
    ),
)
SIMULATION_CONFIG.declare(
    "end_time",
    ConfigValue(
        default=10.0,
        domain=PositiveFloat,
        description="End time of a dynamic run [d]",
    ),
)
SIMULATION_CONFIG.declare(
    "time_step",
    ConfigValue(
        default=0.01,
        domain=PositiveFloat,
        description="Integration output step of a dynamic run [d]",
    ),
)
SIMULATION_CONFIG.declare(
    "output_interval",
    ConfigValue(
        default=0.5,
        domain=PositiveFloat,
        description="Interval between recorded time points [d]",
    ),
)
SIMULATION_CONFIG.declare(
    "solver",
    ConfigValue(
        default="LSODA",
        domain=In(METHODS),
        description="Integration method of a dynamic run",
    ),
)
SIMULATION_CONFIG.declare(
    "tolerance",
    ConfigValue(
        default=1e-6,
        domain=PositiveFloat,
        description="Relative tolerance of adaptive integration methods",
    ),
)
SIMULATION_CONFIG.declare(
    "max_iterations",
    ConfigValue(
        default=100,
        domain=PositiveInt,
        description="Maximum number of recycle iterations",
    ),
)
SIMULATION_CONFIG.declare(
    "steady_state_tolerance",
    ConfigValue(
        default=1e-4,
        domain=PositiveFloat,
        description="Relative change below which a state is taken as steady",
        doc="""Network convergence tolerance in steady state mode; in dynamic
mode the largest relative change between two recorded time points below
which the run is reported as having reached steady state.""",
    ),
)
SIMULATION_CONFIG.declare(
    "zone_time_step",
    ConfigValue(
        default=0.01,
        domain=PositiveFloat,
        description="Euler time step of the zone solves [d]",
    ),
)
SIMULATION_CONFIG.declare(
    "zone_max_iterations",
    ConfigValue(
        default=1000,
        domain=PositiveInt,
        description="Euler step cap of each zone solve",
    ),
)
SIMULATION_CONFIG.declare(
    "zone_tolerance",
    ConfigValue(
        default=1e-5,
        domain=PositiveFloat,
        description="Convergence tolerance of each zone solve",
    ),
)
SIMULATION_CONFIG.declare(
    "initial_state",
    ConfigValue(
        default=None,
        description="Initial state of a dynamic run",
        doc="""State vector or {component: concentration} mapping, the
packaged seed state if None.""",
    ),
)
SIMULATION_CONFIG.declare(
    "influent_fractions",
    ConfigValue(
        default=None,
        domain=str,
        description="Influent fraction set, the default set if None",
    ),
)
SIMULATION_CONFIG.declare(
    "clarifier_efficiency",
    ConfigValue(
        default=DEFAULT_CLARIFIER_EFFICIENCY,
        domain=NonNegativeFloat,
        description="Fraction of the particulates retained by the clarifier",
    ),
)


REACTOR_CONFIG = ConfigDict()
REACTOR_CONFIG.declare(
    "name",
    ConfigValue(default="custom", domain=str, description="Layout name"),
)
REACTOR_CONFIG.declare(
    "description",
    ConfigValue(default="", domain=str, description="Layout description"),
)
REACTOR_CONFIG.declare(
    "zones",
    ConfigValue(
        default=None,
        domain=list,
        description="Reactor zones in flow order",
        doc="""List of zone dicts with id, name, zone_type, volume and
optional hrt and do_setpoint.""",
    ),
)
REACTOR_CONFIG.declare(
    "total_volume",
    ConfigValue(
        default=None,
        domain=PositiveFloat,
        description="Total reactor volume [m3], sum of the zones if None",
    ),
)
REACTOR_CONFIG.declare(
    "total_hrt",
    ConfigValue(
        default=None,
        domain=PositiveFloat,
        description="Total hydraulic retention time [h]",
        doc="""Used by dynamic runs. Derived from the total volume and the
influent flow if None.""",
    ),
)
REACTOR_CONFIG.declare(
    "srt",
    ConfigValue(
        default=15.0,
        domain=PositiveFloat,
        description="Sludge retention time [d]",
    ),
)
REACTOR_CONFIG.declare(
    "temperature",
    ConfigValue(
        default=20.0,
        domain=float,
        description="Operating temperature [C]",
    ),
)
REACTOR_CONFIG.declare(
    "internal_recycle",
    ConfigValue(
        default=0.0,
        domain=NonNegativeFloat,
        description="Internal (nitrate) recycle ratio",
    ),
)
REACTOR_CONFIG.declare(
    "return_sludge",
    ConfigValue(
        default=0.0,
        domain=NonNegativeFloat,
        description="Return activated sludge ratio",
    ),
)


def reactor_config(preset=None, database=None, **overrides):
    """
    Build a reactor configuration from a named layout.

    Args:
        preset - (optional) layout name, e.g. "A2O", "AO", "MLE",
                 "Bardenpho5" or "Johannesburg"; A2O if not given
        database - (optional) ParameterDatabase
        overrides - REACTOR_CONFIG values replacing those of the preset

    Returns:
        a REACTOR_CONFIG ConfigDict
    """
    if database is None:
        database = ParameterDatabase()
    data = database.get_reactor_preset(preset)
    data.update(overrides)
    return REACTOR_CONFIG(data)


@dataclass(frozen=True, eq=False)
class TimePoint:
    time: float
    state: np.ndarray
    process_rates: tuple


@dataclass(frozen=True)
class SteadyStateInfo:
    """
    Attributes:
        reached - whether the run ended at a steady state
        iterations - recycle iterations (steady state) or integration
                     steps (dynamic)
        max_change - final largest relative state change
        time_to_steady_state - first recorded time from which the state
                               stayed steady, dynamic runs only
    """

    reached: bool
    iterations: int
    max_change: float
    time_to_steady_state: float = None


@dataclass(frozen=True, eq=False)
class SimulationResult:
    """
    Outcome of ``run_simulation``.
    """

    mode: SimulationMode
    final_state: np.ndarray
    zone_states: dict
    time_series: tuple
    effluent: object
    performance: object
    pao: object
    sludge: object
    oxygen: object
    phosphorus: object
    steady_state: SteadyStateInfo
    total_steps: int
    execution_time: float
    warnings: tuple = field(default_factory=tuple)

    def time_series_frame(self):
        """
        Time series as a DataFrame indexed by time, one column per component
        followed by one column per process rate (R1..R21).
        """
        rows = []
        for point in self.time_series:
            row = dict(zip(COMPONENT_LIST, point.state))
            row.update({pr.id: pr.rate for pr in point.process_rates})
            rows.append(row)
        frame = pd.DataFrame(rows, index=[p.time for p in self.time_series])
        frame.index.name = "time"
        return frame

    def zone_frame(self):
        """Zone states as a DataFrame, one row per zone in flow order"""
        return pd.DataFrame.from_dict(
            {k: list(v) for k, v in self.zone_states.items()},
            orient="index",
            columns=list(COMPONENT_LIST),
        )


def _initial_state(value):
    if value is None:
        return default_initial_state()
    if isinstance(value, dict):
        return state_from_dict(value)
    return clamp(value)


def _relative_change(a, b, floor):
    return float(np.max(np.abs(b - a) / np.maximum(np.abs(a), floor)))


def _output_indices(n_points, stride):
    indices = list(range(0, n_points, stride))
    if indices[-1] != n_points - 1:
        indices.append(n_points - 1)
    return indices


def _zone_volume(zone, influent_flow):
    if zone.volume is not None:
        return zone.volume
    hrt = zone.hydraulic_retention_time(influent_flow)
    return hrt * influent_flow / HOURS_PER_DAY


def _run_steady_state(config, reactor, zones, influent, influent_state, model):
    result = simulate_multi_zone(
        zones,
        influent_state,
        model,
        internal_recycle=reactor.internal_recycle,
        return_sludge=reactor.return_sludge,
        influent_flow=influent.flow_rate,
        max_iterations=config.max_iterations,
        tolerance=config.steady_state_tolerance,
        zone_time_step=config.zone_time_step,
        zone_max_iterations=config.zone_max_iterations,
        zone_tolerance=config.zone_tolerance,
    )
    final_state = result.terminal_state
    time_series = (
        TimePoint(0.0, final_state, model.process_rates(final_state)),
    )
    rate_volumes = [
        (
            model.process_rates(result.zone_states[z.id]),
            _zone_volume(z, influent.flow_rate),
        )
        for z in zones
    ]
    steady_state = SteadyStateInfo(
        reached=result.converged,
        iterations=result.iterations,
        max_change=result.max_change,
    )
    warnings = []
    if not result.converged:
        warnings.append(
            f"Recycle network did not converge in {result.iterations} "
            f"iterations (max relative change {result.max_change:.3e})."
        )
    return (
        final_state,
        result.zone_states,
        time_series,
        rate_volumes,
        steady_state,
        result.iterations,
        warnings,
    )


def _run_dynamic(
    config, reactor, zones, influent, influent_state, model, integrator, total_volume
):
    if reactor.total_hrt is not None:
        hrt = reactor.total_hrt
    else:
        hrt = total_volume / (influent.flow_rate / HOURS_PER_DAY)

    aerobic = [z for z in zones if z.zone_type is ZoneType.aerobic]
    do_setpoint = aerobic[-1].do_setpoint if aerobic else DEFAULT_DO_SETPOINT

    def derivatives(t, y):
        return cstr_derivatives(
            y, influent_state, hrt, model, ZoneType.aerobic, do_setpoint
        )

    if integrator is None:
        integrator = create_integrator(config.solver, rtol=config.tolerance)
    times, states = integrator.integrate(
        derivatives,
        _initial_state(config.initial_state),
        config.start_time,
        config.end_time,
        config.time_step,
    )

    # the integrator logs its own failures
    warnings = []
    if times[-1] < config.end_time - 1e-9 * max(1.0, abs(config.end_time)):
        warnings.append(
            f"Integration stopped at t = {times[-1]:g} d before the end time "
            f"{config.end_time:g} d."
        )

    stride = max(1, int(round(config.output_interval / config.time_step)))
    indices = _output_indices(len(times), stride)
    time_series = tuple(
        TimePoint(float(times[i]), states[i], model.process_rates(states[i]))
        for i in indices
    )
    final_state = states[-1]

    # steady once every later change between recorded points stays small
    changes = [
        _relative_change(a.state, b.state, 1e-3)
        for a, b in zip(time_series, time_series[1:])
    ]
    time_to_steady_state = None
    for i in range(len(changes), 0, -1):
        if changes[i - 1] >= config.steady_state_tolerance:
            break
        time_to_steady_state = time_series[i - 1].time
    max_change = changes[-1] if changes else float("inf")
    steady_state = SteadyStateInfo(
        reached=max_change < config.steady_state_tolerance,
        iterations=len(times) - 1,
        max_change=max_change,
        time_to_steady_state=time_to_steady_state,
    )
    if not steady_state.reached:
        warnings.append(
            f"Steady state not reached by t = {times[-1]:g} d (max relative "
            f"change {max_change:.3e} over the last output interval)."
        )
        _log.warning(warnings[-1])

    rate_volumes = [(time_series[-1].process_rates, total_volume)]
    return (
        final_state,
        {},
        time_series,
        rate_volumes,
        steady_state,
        len(times) - 1,
        warnings,
    )


def run_simulation(
    simulation_config=None,
    reactor=None,
    influent=None,
    parameters=None,
    integrator=None,
):
    """
    Run an ASM2d plant simulation.

    Args:
        simulation_config - (optional) SIMULATION_CONFIG values
        reactor - (optional) REACTOR_CONFIG or dict of its values, the A2O
                  layout if None
        influent - (optional) ConventionalInfluent, typical domestic sewage
                   if None
        parameters - (optional) dict with any of "kinetic", "stoich" and
                     "coefficients" parameter sets, defaults otherwise
        integrator - (optional) object with ``integrate(f, y0, t0, t1,
                     step)`` used by dynamic runs, built from the configured
                     solver if None

    Returns:
        SimulationResult; non-convergence is reported in the result, not
        raised
    """
    start = time.perf_counter()
    config = SIMULATION_CONFIG(simulation_config)
    if reactor is None:
        reactor = reactor_config()
    else:
        reactor = REACTOR_CONFIG(reactor)
    if not reactor.zones:
        raise InvalidParameterError("Reactor configuration has no zones.")
    if influent is None:
        influent = ConventionalInfluent.typical_domestic()
    if not influent.flow_rate > 0:
        raise InvalidParameterError(
            f"Influent flow rate must be positive, got {influent.flow_rate}."
        )
    if parameters is None:
        parameters = {}

    model = ASM2dModel.build(
        kinetic=parameters.get("kinetic"),
        stoich=parameters.get("stoich"),
        coefficients=parameters.get("coefficients"),
        temperature=reactor.temperature,
    )
    influent_state = fractionate_influent(
        influent, get_fractions(config.influent_fractions)
    )
    zones = build_zones(reactor.zones)
    if reactor.total_volume is not None:
        total_volume = reactor.total_volume
    else:
        total_volume = sum(_zone_volume(z, influent.flow_rate) for z in zones)

    if config.mode is SimulationMode.steady_state:
        outcome = _run_steady_state(
            config, reactor, zones, influent, influent_state, model
        )
    else:
        outcome = _run_dynamic(
            config,
            reactor,
            zones,
            influent,
            influent_state,
            model,
            integrator,
            total_volume,
        )
    (
        final_state,
        zone_states,
        time_series,
        rate_volumes,
        steady_state,
        total_steps,
        warnings,
    ) = outcome

    effluent = effluent_quality(
        final_state, config.clarifier_efficiency, model.stoich
    )
    sludge = sludge_production(final_state, total_volume, reactor.srt, model.stoich)
    cod_removed_load = influent.flow_rate * (influent.COD - effluent.COD) / 1000
    result = SimulationResult(
        mode=config.mode,
        final_state=final_state,
        zone_states=zone_states,
        time_series=time_series,
        effluent=effluent,
        performance=removal_performance(influent, effluent),
        pao=pao_metrics(final_state, time_series[-1].process_rates, model.stoich),
        sludge=sludge,
        oxygen=oxygen_demand(rate_volumes, model.stoich, max(0.0, cod_removed_load)),
        phosphorus=phosphorus_balance(influent, effluent, sludge),
        steady_state=steady_state,
        total_steps=total_steps,
        execution_time=time.perf_counter() - start,
        warnings=tuple(warnings),
    )

    _log.info(
        f"{reactor['name']} {config.mode.name} simulation finished in "
        f"{result.execution_time:.2f} s: effluent COD {effluent.COD:.1f}, "
        f"NH4-N {effluent.NH4N:.2f}, TP {effluent.TP:.2f} mg/L"
    )
    return result
