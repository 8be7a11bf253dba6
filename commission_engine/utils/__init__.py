"""Utility functions."""

from commission_engine.utils.audit import log_action
from commission_engine.utils.password import hash_password, verify_password

__all__ = [
    "hash_password",
    "verify_password",
    "log_action",
]
