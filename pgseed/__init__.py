"""
Postgres seed runner.

Ensures the target database and the `seeds` bookkeeping table exist, then applies
registered seed steps in order, one transaction per step.
"""

from pgseed.errors import (
    CommitError,
    SeedError,
    SeederConnectionError,
    SeederError,
    SetupError,
    TransactionError,
)
from pgseed.seed import Seed, SeedExec, SeedFx, SeedStep
from pgseed.seeder import AppliedSeed, SeedReport, Seeder

__all__ = [
    "AppliedSeed",
    "CommitError",
    "Seed",
    "SeedError",
    "SeedExec",
    "SeedFx",
    "SeedReport",
    "SeedStep",
    "Seeder",
    "SeederConnectionError",
    "SeederError",
    "SetupError",
    "TransactionError",
]
