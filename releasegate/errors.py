"""All releasegate exception types in one place, for callers that catch them."""

from releasegate.builders import BuildError
from releasegate.core.collector import ArtifactIntegrityError, MissingArtifactError
from releasegate.core.preflight import ConfigError
from releasegate.core.publisher import PublishError
from releasegate.storage import StoreError
from releasegate.storage.identity import IdentityError

__all__ = [
    "ArtifactIntegrityError",
    "BuildError",
    "ConfigError",
    "IdentityError",
    "MissingArtifactError",
    "PublishError",
    "StoreError",
]
