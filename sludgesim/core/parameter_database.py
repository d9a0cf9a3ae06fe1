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
This module contains the class for reading the default ASM2d parameter
tables, reactor presets and influent fractions from the packaged YAML files.
"""
import os
import yaml
from copy import deepcopy


class ParameterDatabase:
    """
    ASM2d parameter database class.

    Each YAML file in the database folder holds one parameter group. A group
    defines a ``default`` entry and any number of named subtypes, which are
    merged on top of the default when requested.

    Args:
        dbpath - (optional) path to database folder containing yaml files

    Returns:
        an instance of a ParameterDatabase object linked to the provided
        database
    """

    def __init__(self, dbpath=None):
        self._cached_files = {}

        if dbpath is None:
            self._dbpath = os.path.join(
                os.path.dirname(os.path.abspath(__file__)),
                "..",
                "data",
                "asm2d",
            )
        else:
            self._dbpath = dbpath

            # Confirm valid path
            if not os.path.isdir(self._dbpath):
                raise OSError(
                    f"Could not find requested path {self._dbpath}. Please "
                    f"check that this path exists."
                )

    def get_parameters(self, group, subtype=None):
        """
        Method to retrieve a parameter group by subtype.

        Args:
            group - name of the parameter group (YAML file name without
                    extension), e.g. "kinetic_parameters".
            subtype - (optional) string or list-of-strings indicating specific
                      sub-types to merge over the defaults. If not provided,
                      the default parameters are returned.

        Returns:
            dict of parameters for group and subtype

        Raises:
            KeyError if group or subtype could not be found in database
            TypeError if subtype is not string or list-of-strings
        """
        params = self._get_group(group)

        try:
            sparams = deepcopy(params["default"])
        except KeyError:
            raise KeyError(f"Database has not defined defaults for {group}.")

        if subtype is None:
            pass
        elif isinstance(subtype, str):
            try:
                sparams.update(deepcopy(params[subtype]))
            except KeyError:
                raise KeyError(
                    f"Received unrecognised subtype {subtype} for parameter "
                    f"group {group}."
                )
        else:
            try:
                for s in subtype:
                    # Later subtypes overwrite earlier ones where they overlap
                    try:
                        sparams.update(deepcopy(params[s]))
                    except KeyError:
                        raise KeyError(
                            f"Received unrecognised subtype {s} for "
                            f"parameter group {group}."
                        )
            except TypeError:
                raise TypeError(
                    f"Unexpected type for subtype {subtype}: must be string "
                    f"or list like."
                )

        return sparams

    def get_subtypes(self, group):
        """
        Return the names of the subtypes defined for a parameter group.
        """
        return [k for k in self._get_group(group) if k != "default"]

    def get_reactor_preset(self, name=None):
        """
        Method to retrieve a reactor layout.

        Args:
            name - (optional) preset name, e.g. "A2O" or "MLE". The default
                   layout is returned when not provided or when the name
                   matches the default preset.

        Returns:
            dict describing the zones, recycle ratios and operating data
        """
        if name is not None:
            default = self._get_group("reactor_presets")["default"]
            if name == default.get("name"):
                name = None
        return self.get_parameters("reactor_presets", name)

    def flush_cache(self):
        """
        Method to flush cached files in database object.
        """
        self._cached_files = {}

    def _get_group(self, group):
        if group in self._cached_files:
            return self._cached_files[group]

        try:
            with open(os.path.join(self._dbpath, group + ".yaml"), "r") as f:
                lines = f.read()
        except OSError:
            raise KeyError(f"Could not find entry for {group} in database.")

        fdata = yaml.load(lines, yaml.Loader)

        # Store data in cache and return
        self._cached_files[group] = fdata
        return fdata
