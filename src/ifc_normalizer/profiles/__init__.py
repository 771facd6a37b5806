"""
Normalization profiles for the IFC Normalizer.

Profiles are CONFIGURATIONS, not separate code paths: every profile uses the
same collector, matcher and normalizer, and only changes which elements,
property set and properties are looked at.

Available Profiles:
- WALLS: IfcWall / Pset_WallCommon
- SLABS: IfcSlab / Pset_SlabCommon
"""

from .config import (
    Profile,
    NormalizationProfile,
    TargetProperty,
    ValuePolicy,
    PROFILES,
    get_profile,
    get_available_profiles,
)

__all__ = [
    'Profile', 'NormalizationProfile', 'TargetProperty', 'ValuePolicy',
    'PROFILES', 'get_profile', 'get_available_profiles',
]
