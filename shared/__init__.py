# =============================================================================
# DIP REGISTRY - SHARED MODULE
# =============================================================================
#
# Shared utilities only. No registry logic lives here.
#
# CONTENTS:
# - Enums (shared type definitions)
# - Configuration (YAML + environment)
# - Logging utilities (operational + audit)
#
# =============================================================================

from .enums import StatusKind, RegistryEvent, TERMINAL_KINDS
from .config import RegistryConfig, get_registry_config
from .logging_config import setup_logging, AuditLogger

__all__ = [
    "StatusKind",
    "RegistryEvent",
    "TERMINAL_KINDS",
    "RegistryConfig",
    "get_registry_config",
    "setup_logging",
    "AuditLogger",
]
