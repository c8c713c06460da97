"""Blueprint artifacts and their on-disk store."""

from aegis.blueprints.domain.models import Artifact
from aegis.blueprints.infrastructure.artifact_store import ArtifactStore

__all__ = ["Artifact", "ArtifactStore"]
