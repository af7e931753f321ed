"""Workflow definitions."""

from cryptopulse.workflows.crypto import (
    DEGRADED_REASON,
    WORKFLOW_NAME,
    build_crypto_workflow,
    build_from_settings,
    format_summary,
)

__all__ = [
    "DEGRADED_REASON",
    "WORKFLOW_NAME",
    "build_crypto_workflow",
    "build_from_settings",
    "format_summary",
]
