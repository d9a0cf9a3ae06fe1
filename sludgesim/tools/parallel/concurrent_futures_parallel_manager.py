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

import numpy

from concurrent import futures

import idaes.logger as idaeslog

from sludgesim.tools.parallel.results import LocalResults
from sludgesim.tools.parallel.parallel_manager import (
    build_and_execute,
    ParallelManager,
)


# Set up logger
_log = idaeslog.getLogger(__name__)


class ConcurrentFuturesParallelManager(ParallelManager):
    def __init__(self, number_of_subprocesses=1, **kwargs):
        self.max_number_of_subprocesses = number_of_subprocesses

        # this will be updated when child processes are kicked off
        self.actual_number_of_subprocesses = None

        # Future -> (process number, parameters) for all in-progress futures
        self.running_futures = dict()

    def is_root_process(self):
        return True

    def get_rank(self):
        return self.ROOT_PROCESS_RANK

    def number_of_worker_processes(self):
        if self.actual_number_of_subprocesses is None:
            return self.max_number_of_subprocesses
        return self.actual_number_of_subprocesses

    def scatter(
        self,
        do_build,
        do_build_kwargs,
        do_execute,
        all_parameters,
    ):
        all_parameters = list(all_parameters)
        # constrain the number of child processes to the number of scenarios
        self.actual_number_of_subprocesses = max(
            1, min(self.max_number_of_subprocesses, len(all_parameters))
        )

        # split the scenario positions into contiguous chunks, one per child process
        divided_indices = numpy.array_split(
            numpy.arange(len(all_parameters)), self.actual_number_of_subprocesses
        )

        self.executor = futures.ProcessPoolExecutor(
            max_workers=self.actual_number_of_subprocesses
        )

        for i, indices in enumerate(divided_indices):
            local_parameters = [all_parameters[j] for j in indices]
            self.running_futures[
                self.executor.submit(
                    build_and_execute,
                    do_build,
                    do_build_kwargs,
                    do_execute,
                    local_parameters,
                )
            ] = (i, local_parameters)

    def gather(self):
        results = []
        try:
            execution_results = futures.wait(self.running_futures.keys())
            for future in execution_results.done:
                process_number, values = self.running_futures[future]
                results.append(LocalResults(process_number, values, future.result()))

            if len(execution_results.not_done) > 0:
                _log.warning(
                    f"{len(execution_results.not_done)} out of "
                    f"{len(self.running_futures)} total subprocesses did not "
                    f"finish and provide results"
                )
        finally:
            self.executor.shutdown()
            self.running_futures = dict()

        # sort the results by the process number to keep a deterministic ordering
        results.sort(key=lambda result: result.process_number)
        return results
