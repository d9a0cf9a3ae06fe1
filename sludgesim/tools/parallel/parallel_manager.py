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

from abc import abstractmethod, ABC


class ParallelManager(ABC):
    ROOT_PROCESS_RANK = 0

    @abstractmethod
    def is_root_process(self):
        """
        Return whether the current process should be considered as the root of the
        group of processes running scenarios.
        """
        raise NotImplementedError

    @abstractmethod
    def get_rank(self):
        """
        Get the process's rank number in its group.
        """
        raise NotImplementedError

    @abstractmethod
    def number_of_worker_processes(self):
        """
        Return how many total processes are running scenarios.
        """
        raise NotImplementedError

    @abstractmethod
    def scatter(
        self,
        do_build,
        do_build_kwargs,
        do_execute,
        all_parameters,
    ):
        """
        Scatter the specified execution out, as defined by the implementation's
        parallelism, for a list of parameters.
        Args:
        - do_build: a function that builds the arguments necessary for the execution
        function. expected to return a list that will be exploded and passed into the
        do_execute function as arguments.
        - do_build_kwargs: a dictionary of keyword arguments for the do_build function
        - do_execute: the execution function. expected to take in the list of local
        parameters as its first argument. any arguments after that should match the
        list returned by the do_build function.
        - all_parameters: a list of all parameters to be run. included so that
        different implementations can make decisions about splitting.
        """
        raise NotImplementedError

    @abstractmethod
    def gather(self):
        """
        Gather the results of the computation that was kicked off via a previous
        scatter.
        Returns:
        - a list of LocalResults, one per process, ordered by process number. each
        result holds the return value of the do_execute function for that process.
        """
        raise NotImplementedError


def build_and_execute(do_build, do_build_kwargs, do_execute, local_parameters):
    """
    Entrypoint for implementations of the parallel manager to use for running the
    build and execute functions. Defined at the top level so that it's picklable.

    For a description of the first three arguments, see the scatter() function above.
    The fourth argument is the list of local parameters that should be run by this
    process.
    """
    execute_args = do_build(**do_build_kwargs)
    return do_execute(local_parameters, *execute_args)
