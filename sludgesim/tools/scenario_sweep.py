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
Batch runs of independent ASM2d simulations.

A scenario is a dict of overrides applied on top of a shared base case:

    name              label of the run
    simulation        run_simulation configuration values
    reactor_preset    reactor layout name
    reactor           reactor configuration values
    influent          ConventionalInfluent field values
    kinetic_subtype   kinetic parameter subtype from the parameter database
    kinetic           kinetic parameter values
    stoichiometric    stoichiometric parameter values
    temperature_coefficients  Arrhenius theta values

Scenarios share nothing, so a batch can be fanned out over worker processes
through a parallel manager.
"""
from dataclasses import dataclass, replace

import pandas as pd

import idaes.logger as idaeslog

from sludgesim.custom_exceptions import InvalidParameterError
from sludgesim.flowsheets.activated_sludge.asm2d_simulation import (
    reactor_config,
    run_simulation,
)
from sludgesim.property_models.activated_sludge.asm2d_parameters import (
    KineticParameters,
    StoichiometricParameters,
    TemperatureCoefficients,
)
from sludgesim.property_models.activated_sludge.influent_fractionation import (
    ConventionalInfluent,
)
from sludgesim.tools.parallel.parallel_manager_factory import create_parallel_manager


# Set up logger
_log = idaeslog.getLogger(__name__)

SCENARIO_KEYS = (
    "name",
    "simulation",
    "reactor_preset",
    "reactor",
    "influent",
    "kinetic_subtype",
    "kinetic",
    "stoichiometric",
    "temperature_coefficients",
)


@dataclass(frozen=True, eq=False)
class ScenarioResult:
    name: str
    scenario: dict
    result: object


def _scenario_name(scenario, position):
    return scenario.get("name", f"scenario_{position}")


def run_scenario(
    scenario, simulation=None, reactor_preset=None, reactor=None, influent=None
):
    """
    Run one scenario against a base case.

    Args:
        scenario - dict of overrides, see the module docstring
        simulation - (optional) base run_simulation configuration values
        reactor_preset - (optional) base reactor layout name
        reactor - (optional) base reactor configuration values
        influent - (optional) base ConventionalInfluent

    Returns:
        SimulationResult
    """
    unknown = sorted(set(scenario) - set(SCENARIO_KEYS))
    if unknown:
        raise InvalidParameterError(
            f"Unrecognised scenario keys {', '.join(unknown)}. Valid keys are "
            f"{', '.join(SCENARIO_KEYS)}."
        )

    simulation_config = dict(simulation or {})
    simulation_config.update(scenario.get("simulation", {}))

    reactor_overrides = dict(reactor or {})
    reactor_overrides.update(scenario.get("reactor", {}))
    reactor_cfg = reactor_config(
        scenario.get("reactor_preset", reactor_preset), **reactor_overrides
    )

    if influent is None:
        influent = ConventionalInfluent.typical_domestic()
    influent = replace(influent, **scenario.get("influent", {}))

    parameters = {
        "kinetic": KineticParameters.from_database(
            subtype=scenario.get("kinetic_subtype")
        ).with_updates(scenario.get("kinetic", {})),
        "stoich": StoichiometricParameters.default().with_updates(
            scenario.get("stoichiometric", {})
        ),
        "coefficients": TemperatureCoefficients.default().with_updates(
            scenario.get("temperature_coefficients", {})
        ),
    }
    return run_simulation(simulation_config, reactor_cfg, influent, parameters)


def build_scenario_base(
    simulation=None, reactor_preset=None, reactor=None, influent=None
):
    return [simulation, reactor_preset, reactor, influent]


def execute_scenarios(local_scenarios, simulation, reactor_preset, reactor, influent):
    return [
        run_scenario(s, simulation, reactor_preset, reactor, influent)
        for s in local_scenarios
    ]


def run_scenarios(
    scenarios,
    simulation=None,
    reactor_preset=None,
    reactor=None,
    influent=None,
    number_of_subprocesses=1,
    parallel_back_end="ConcurrentFutures",
):
    """
    Run a batch of independent scenarios.

    Args:
        scenarios - list of scenario override dicts
        simulation, reactor_preset, reactor, influent - base case, see
            run_scenario
        number_of_subprocesses - worker processes to fan out over, 1 runs
            every scenario in this process
        parallel_back_end - parallel manager back end for fanned out runs

    Returns:
        list of ScenarioResult in the order of ``scenarios``
    """
    scenarios = list(scenarios)
    names = [_scenario_name(s, i) for i, s in enumerate(scenarios)]
    if len(set(names)) != len(names):
        raise InvalidParameterError("Scenario names must be unique.")

    parallel_manager = create_parallel_manager(
        number_of_subprocesses=number_of_subprocesses,
        parallel_back_end=parallel_back_end,
    )
    _log.info(
        f"Running {len(scenarios)} scenarios on "
        f"{parallel_manager.number_of_worker_processes()} process(es)"
    )
    parallel_manager.scatter(
        build_scenario_base,
        dict(
            simulation=simulation,
            reactor_preset=reactor_preset,
            reactor=reactor,
            influent=influent,
        ),
        execute_scenarios,
        scenarios,
    )
    results = [r for local in parallel_manager.gather() for r in local.results]

    return [
        ScenarioResult(name, scenario, result)
        for name, scenario, result in zip(names, scenarios, results)
    ]


def summary_frame(scenario_results):
    """
    One row per scenario with the steady state status, effluent quality,
    removals and oxygen and sludge figures.
    """
    rows = {}
    for sr in scenario_results:
        result = sr.result
        row = {"steady_state": result.steady_state.reached}
        row.update({f"effluent_{k}": v for k, v in result.effluent.to_dict().items()})
        row.update(
            {f"removal_{k}": v for k, v in result.performance.to_dict().items()}
        )
        row["oxygen_demand"] = result.oxygen.total
        row["sludge_production"] = result.sludge.wastage_rate
        row["bio_p_removal"] = result.phosphorus.bio_p_removal
        rows[sr.name] = row
    frame = pd.DataFrame.from_dict(rows, orient="index")
    frame.index.name = "scenario"
    return frame
