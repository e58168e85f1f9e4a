"""
GDPR Configuration Module

Host-level GDPR settings and TCF v2 enforcement configuration with
account-level overrides.
"""

from .enforcement import (
    PURPOSE_IDS,
    PurposeConfig,
    PurposeOneTreatmentConfig,
    SpecialFeatureConfig,
    TCF2Config,
    load_tcf2_config,
)
from .host_config import (
    GDPRHostConfig,
    load_host_config,
)

__all__ = [
    "PURPOSE_IDS",
    "PurposeConfig",
    "PurposeOneTreatmentConfig",
    "SpecialFeatureConfig",
    "TCF2Config",
    "load_tcf2_config",
    "GDPRHostConfig",
    "load_host_config",
]
