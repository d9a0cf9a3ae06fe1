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
Switching functions used by the ASM2d rate expressions.

All functions are pure and guard their denominators with a small epsilon so
that zero concentrations and zero half-saturation constants never divide by
zero.
"""

EPS = 1e-10

# Below this biomass concentration (g COD/m3) storage ratios are reported as 0
BIOMASS_FLOOR = 0.1


def monod(S, K):
    """
    Monod saturation term S / (K + S).
    """
    return S / (K + S + EPS)


def inhibition(S, K):
    """
    Non-competitive inhibition term K / (K + S).
    """
    return K / (K + S + EPS)


def saturation_inhibition(ratio, K_MAX, K_IPP):
    """
    Inhibition of polyphosphate storage as the cell content approaches its
    maximum.

    Args:
        ratio - X_PP / X_PAO storage ratio
        K_MAX - maximum storage ratio
        K_IPP - half-saturation constant of the remaining capacity

    Returns:
        a value in [0, 1), exactly 0 once the ratio reaches K_MAX
    """
    available = max(0.0, K_MAX - ratio)
    return available / (K_IPP + available + EPS)


def safe_ratio(numerator, biomass):
    """
    Ratio of a storage product to its biomass, 0 for washed out biomass.
    """
    if biomass > BIOMASS_FLOOR:
        return numerator / biomass
    return 0.0


def is_anaerobic(S_O, S_NO, K_O, K_NO):
    return S_O < K_O and S_NO < K_NO


def is_anoxic(S_O, S_NO, K_O, K_NO):
    return S_O < K_O and S_NO >= K_NO


def is_aerobic(S_O, K_O):
    return S_O >= K_O
