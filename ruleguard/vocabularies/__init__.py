"""Named capability profiles for the feature validator."""

from .editor import create_editor_vocabulary, create_verified_vocabulary

__all__ = [
    "create_editor_vocabulary",
    "create_verified_vocabulary",
]
