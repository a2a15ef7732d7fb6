"""
Artifact Storage

Provides write-once, root-keyed persistence for commitment artifacts.
"""

from store.artifacts import ARTIFACT_SUFFIX, ArtifactStore

__all__ = [
    "ARTIFACT_SUFFIX",
    "ArtifactStore",
]
