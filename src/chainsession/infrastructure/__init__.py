"""
chainsession.infrastructure - Artifact Infrastructure
=======================================================

    - ArtifactRegistry: keeps the store's ``artifacts`` field in step with
      artifact-loaded notifications
    - parse_artifact(): schema-validated artifact document parsing
"""

from chainsession.infrastructure.artifact_registry import ArtifactRegistry, parse_artifact

__all__ = [
    "ArtifactRegistry",
    "parse_artifact",
]
