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

from sludgesim.tools.parallel.concurrent_futures_parallel_manager import (
    ConcurrentFuturesParallelManager,
)
from sludgesim.tools.parallel.single_process_parallel_manager import (
    SingleProcessParallelManager,
)


def create_parallel_manager(parallel_manager_class=None, **kwargs):
    """
    Create and return an instance of a ParallelManager.

    Allows an optional python class to be passed in as parallel_manager_class. If so,
    this class is instantiated and returned rather than choosing one from the
    requested number of subprocesses.
    """
    if parallel_manager_class is not None:
        return parallel_manager_class(**kwargs)

    number_of_subprocesses = kwargs.get("number_of_subprocesses", 1)
    if should_fan_out(number_of_subprocesses):
        parallel_backend = kwargs.get("parallel_back_end", "ConcurrentFutures")
        if parallel_backend == "ConcurrentFutures":
            return ConcurrentFuturesParallelManager(number_of_subprocesses)
        else:
            raise NotImplementedError(
                f"ParallelManager {parallel_backend} is not yet implemented"
            )

    return SingleProcessParallelManager()


def should_fan_out(number_of_subprocesses):
    """
    Returns whether the manager should fan out the computation to subprocesses.
    """
    return number_of_subprocesses > 1
