"""
serverinit data models

Configuration models and verified-download outcome types.
"""

from serverinit.models.config import (
    DEFAULT_COMPOSER_DIGEST,
    DEFAULT_PHP_VERSION,
    InstallableUnit,
    WorkdirConfig,
    PhpConfig,
    RepositoryConfig,
    ComposerConfig,
    ServerInitConfig,
)
from serverinit.models.artifact import (
    VerificationResult,
    ReadyArtifact,
)

__all__ = [
    # config
    "DEFAULT_COMPOSER_DIGEST",
    "DEFAULT_PHP_VERSION",
    "InstallableUnit",
    "WorkdirConfig",
    "PhpConfig",
    "RepositoryConfig",
    "ComposerConfig",
    "ServerInitConfig",
    # artifacts
    "VerificationResult",
    "ReadyArtifact",
]
