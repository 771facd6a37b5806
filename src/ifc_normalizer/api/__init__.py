"""HTTP adapter over the job orchestrator."""

from ifc_normalizer.api.app import create_app

__all__ = ["create_app"]
