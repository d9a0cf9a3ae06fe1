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
Time integrators for the dynamic CSTR simulation.

Every integrator implements ``integrate(f, y0, t0, t1, step)`` where
``f(t, y)`` returns dy/dt, and returns ``(times, states)`` with one row of
``states`` per output time on the grid t0, t0 + step, ..., t1. States are
clamped to non-negative values and ``f`` is only ever evaluated at
non-negative states.
"""
import numpy as np
from scipy.integrate import solve_ivp

from pyomo.common.config import (
    ConfigDict,
    ConfigValue,
    In,
    PositiveFloat,
)

import idaes.logger as idaeslog

from sludgesim.custom_exceptions import InvalidParameterError


# Set up logger
_log = idaeslog.getLogger(__name__)

SCIPY_METHODS = ("RK45", "RK23", "DOP853", "Radau", "BDF", "LSODA")
METHODS = ("euler",) + SCIPY_METHODS


def output_times(t0, t1, step):
    """
    Output grid from t0 to t1 in increments of step, always ending at t1.
    """
    if not step > 0:
        raise InvalidParameterError(f"Time step must be positive, got {step}.")
    if not t1 > t0:
        raise InvalidParameterError(
            f"End time ({t1}) must be greater than the start time ({t0})."
        )
    n = max(1, int(np.ceil((t1 - t0) / step - 1e-9)))
    times = np.minimum(t0 + step * np.arange(n + 1), t1)
    times[-1] = t1
    return times


def _non_negative(f):
    def wrapped(t, y):
        return f(t, np.maximum(y, 0.0))

    return wrapped


class ScipyIntegrator:
    """
    Adapter around ``scipy.integrate.solve_ivp``.

    The default LSODA method switches between stiff and non-stiff schemes,
    which suits the widely spread rate constants of ASM2d.
    """

    CONFIG = ConfigDict()

    CONFIG.declare(
        "method",
        ConfigValue(
            default="LSODA",
            domain=In(SCIPY_METHODS),
            description="solve_ivp integration method",
        ),
    )
    CONFIG.declare(
        "rtol",
        ConfigValue(
            default=1e-6,
            domain=PositiveFloat,
            description="Relative tolerance",
        ),
    )
    CONFIG.declare(
        "atol",
        ConfigValue(
            default=1e-8,
            domain=PositiveFloat,
            description="Absolute tolerance",
        ),
    )
    CONFIG.declare(
        "max_step",
        ConfigValue(
            default=None,
            domain=PositiveFloat,
            description="Largest internal step [d], unbounded if None",
        ),
    )

    def __init__(self, **options):
        self.config = self.CONFIG(options)

    def integrate(self, f, y0, t0, t1, step):
        """
        Integrate dy/dt = f(t, y) from t0 to t1.

        If the solver fails the points reached so far are returned, so the
        last returned time is then earlier than t1.
        """
        times = output_times(t0, t1, step)
        y0 = np.maximum(np.asarray(y0, dtype=float), 0.0)
        kwargs = {}
        if self.config.max_step is not None:
            kwargs["max_step"] = self.config.max_step

        solution = solve_ivp(
            _non_negative(f),
            (times[0], times[-1]),
            y0,
            method=self.config.method,
            t_eval=times,
            rtol=self.config.rtol,
            atol=self.config.atol,
            **kwargs,
        )
        if not solution.success:
            _log.warning(f"Integration failed: {solution.message}")
        if solution.t.size == 0:
            return np.array([times[0]]), y0[np.newaxis, :]

        return solution.t, np.maximum(solution.y.T, 0.0)


class ExplicitEulerIntegrator:
    """
    Fixed step explicit Euler, one step per output interval.
    """

    def integrate(self, f, y0, t0, t1, step):
        times = output_times(t0, t1, step)
        states = np.empty((times.size, np.size(y0)))
        states[0] = np.maximum(np.asarray(y0, dtype=float), 0.0)
        for i in range(1, times.size):
            dt = times[i] - times[i - 1]
            states[i] = np.maximum(
                states[i - 1] + f(times[i - 1], states[i - 1]) * dt, 0.0
            )
        return times, states


def create_integrator(method="LSODA", **options):
    """
    Create an integrator by method name.

    Args:
        method - "euler" or one of the solve_ivp methods
        options - ScipyIntegrator CONFIG values (ignored by euler)
    """
    if method == "euler":
        return ExplicitEulerIntegrator()
    if method not in SCIPY_METHODS:
        raise InvalidParameterError(
            f"Unrecognised integration method {method}. Valid methods are "
            f"{', '.join(METHODS)}."
        )
    return ScipyIntegrator(method=method, **options)
