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
class InvalidParameterError(ValueError):
    """
    Custom exception for invalid simulation inputs.

    Raised at the edges of the engine (zone definitions, simulation modes,
    parameter overrides, influent fractions) when user supplied values can
    not describe a physical plant. Numerical trouble inside the kinetics is
    never reported through this exception.

    Parameters
    ----------
    message : str
        Error message describing the issue
    """

    def __init__(self, message):
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        return f"InvalidParameterError: {self.message}"
