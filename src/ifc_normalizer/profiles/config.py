"""
Normalization Profiles for the IFC Normalizer.

A profile says WHICH elements to normalize, in WHICH property set, and
WHICH properties to align with the catalog (the watch list). Only properties
on the watch list ever produce change-log entries.

HOW TO ADD A NEW PROFILE:
=========================
1. Add a new enum value to Profile
2. Create a NormalizationProfile with the target class, property set and targets
3. Add it to the PROFILES dictionary
4. The CLI will automatically offer it under --profile

Example:
    Profile.DOORS: NormalizationProfile(
        name="Türen",
        target_class="IfcDoor",
        pset_name="Pset_DoorCommon",
        targets=[TargetProperty("FireRating", "T30")],
    )
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Profile(Enum):
    """Available normalization profiles."""
    WALLS = "walls"
    SLABS = "slabs"


class ValuePolicy(Enum):
    """
    How the new value of a change-log entry is chosen.

    RETAIN: keep the existing value; use the default only when the property
            is missing (audit mode)
    APPLY_DEFAULT: always propose the profile default
    """
    RETAIN = "retain"
    APPLY_DEFAULT = "apply_default"


@dataclass(frozen=True)
class TargetProperty:
    """A property on the watch list, with the value proposed when missing."""

    name: str
    default: Any


@dataclass
class NormalizationProfile:
    """
    Configuration for a normalization run.

    Attributes:
        name: Human-readable name for display
        description: Explanation of what this profile does
        target_class: IFC class whose instances are normalized (subtypes included)
        pset_name: Property set holding the targeted properties
        targets: Watch list of properties
        value_policy: How new values are chosen (see ValuePolicy)
        write_back: Write missing/changed properties into the document
    """

    name: str
    target_class: str
    pset_name: str
    targets: list = field(default_factory=list)
    description: str = ""
    value_policy: ValuePolicy = ValuePolicy.RETAIN
    write_back: bool = False

    def __post_init__(self):
        if not self.targets:
            raise ValueError(f"Profile '{self.name}' has no target properties")


# =============================================================================
# PROFILE DEFINITIONS
# =============================================================================

PROFILES: dict[Profile, NormalizationProfile] = {

    # -------------------------------------------------------------------------
    # WALLS (Pset_WallCommon)
    # -------------------------------------------------------------------------
    Profile.WALLS: NormalizationProfile(
        name="Wände",
        description="Brandschutz, U-Wert, Gewerk und Außenlage von Wänden "
                    "gegen die Merkmale des BIM-Portals prüfen.",
        target_class="IfcWall",
        pset_name="Pset_WallCommon",
        targets=[
            TargetProperty("FireRating", "T30"),
            TargetProperty("ThermalTransmittance", 0.35),
            TargetProperty("Gewerk", False),
            TargetProperty("IsExternal", False),
        ],
    ),

    # -------------------------------------------------------------------------
    # SLABS (Pset_SlabCommon)
    # -------------------------------------------------------------------------
    Profile.SLABS: NormalizationProfile(
        name="Decken",
        description="Brandschutz, U-Wert und Außenlage von Decken prüfen.",
        target_class="IfcSlab",
        pset_name="Pset_SlabCommon",
        targets=[
            TargetProperty("FireRating", "F90"),
            TargetProperty("ThermalTransmittance", 0.25),
            TargetProperty("IsExternal", False),
        ],
    ),
}


def get_profile(profile: Profile) -> NormalizationProfile:
    """
    Get the configuration for a specific profile.

    Raises:
        KeyError: If the profile is not defined in PROFILES
    """
    if profile not in PROFILES:
        raise KeyError(f"Unknown profile: {profile}. Available profiles: {list(PROFILES.keys())}")
    return PROFILES[profile]


def get_available_profiles() -> list[tuple[Profile, str, str]]:
    """
    Get list of available profiles for display.

    Returns:
        List of tuples: (Profile enum, display name, description)
    """
    return [
        (profile, config.name, config.description)
        for profile, config in PROFILES.items()
    ]
