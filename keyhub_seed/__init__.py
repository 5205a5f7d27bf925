"""
keyhub-seed - Fixture data seeding for the license management backend.

This package provides tools for:
- Generating realistic organizations, users, licenses and access logs
- Creating records in concurrent, retried and validated batches
- Running entity seeders in dependency order with a structured report
- Cleaning seeded data while keeping the bootstrap admin
"""

__version__ = "0.1.0"

from keyhub_seed.config import Config
from keyhub_seed.models import (
    GenerationOutcome,
    OrchestratorConfig,
    OrchestratorResult,
    SeederResult,
    SeedOptions,
)
from keyhub_seed.orchestrator import Orchestrator

__all__ = [
    "Config",
    "GenerationOutcome",
    "Orchestrator",
    "OrchestratorConfig",
    "OrchestratorResult",
    "SeederResult",
    "SeedOptions",
    "__version__",
]
