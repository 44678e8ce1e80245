"""Core migration logic including configuration, checkpoints and orchestration."""

__all__ = [
    "checkpoint",
    "config",
    "context",
    "migrator",
    "state",
]
