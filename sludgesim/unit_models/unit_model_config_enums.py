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
from enum import Enum, auto


class ZoneType(Enum):
    """
    anaerobic: no oxygen or nitrate supplied, PAO release phosphate
    anoxic: nitrate as electron acceptor, no aeration
    aerobic: aerated, dissolved oxygen held at a setpoint
    """

    anaerobic = auto()
    anoxic = auto()
    aerobic = auto()


class SimulationMode(Enum):
    """
    steady_state: solve the zone network to steady state
    dynamic: integrate a single aerated zone over time
    """

    steady_state = auto()
    dynamic = auto()
