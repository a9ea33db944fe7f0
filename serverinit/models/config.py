"""
Configuration models

Dataclass configuration for a provisioning run, loadable from a plain dict
(TOML / JSON / YAML file contents).
"""

import hashlib
import re
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from serverinit.exceptions import ConfigValidationError


DEFAULT_PHP_VERSION = "8.3"

# sha384 of the Composer installer, pinned by the operator.
# Re-pin from https://composer.github.io/installer.sig on each Composer release.
DEFAULT_COMPOSER_DIGEST = (
    "dac665fdc30fdd8ec78b38b9800061b4150413ff2e3b6f88543c636f7cd84f6d"
    "b9189d43a81e5503cda447da73c7e5b6"
)

_PHP_VERSION_RE = re.compile(r"^\d+\.\d+$")


def _pick(cls, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Keep only the keys the dataclass knows about"""
    if not data:
        return {}
    if not isinstance(data, dict):
        raise ConfigValidationError(
            f"Section for {cls.__name__} must be a table",
            context={"value": data},
        )
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


@dataclass(frozen=True)
class InstallableUnit:
    """A package name template plus the version it is resolved against"""

    name_template: str
    version: str = ""

    def resolve(self) -> str:
        return self.name_template.format(version=self.version)

    def __str__(self) -> str:
        return self.resolve()


@dataclass
class WorkdirConfig:
    """Working directory tree"""

    path: str = "/workdir"
    subdirs: List[str] = field(default_factory=lambda: ["config", "logs", "apps"])
    owner: Optional[str] = None


@dataclass
class PhpConfig:
    """PHP runtime selection"""

    version: str = DEFAULT_PHP_VERSION
    extensions: List[str] = field(
        default_factory=lambda: ["fpm", "dom", "pgsql", "zip"]
    )

    def units(self) -> List[InstallableUnit]:
        return [
            InstallableUnit(f"php{{version}}-{ext}", self.version)
            for ext in self.extensions
        ]


@dataclass
class RepositoryConfig:
    """Third party apt repository providing PHP"""

    name: str = "php"
    url: str = "https://packages.sury.org/php/"
    key_url: str = "https://packages.sury.org/php/apt.gpg"
    component: str = "main"
    codename: Optional[str] = None
    dependencies: List[str] = field(
        default_factory=lambda: [
            "software-properties-common",
            "ca-certificates",
            "lsb-release",
            "apt-transport-https",
            "gnupg2",
        ]
    )

    def source_line(self, codename: str) -> str:
        return f"deb {self.url} {codename} {self.component}"


@dataclass
class ComposerConfig:
    """Composer installer download and install target"""

    installer_url: str = "https://getcomposer.org/installer"
    expected_digest: str = DEFAULT_COMPOSER_DIGEST
    algorithm: str = "sha384"
    installer_name: str = "composer-setup.php"
    install_path: str = "/usr/bin/composer"


@dataclass
class ServerInitConfig:
    """Root configuration"""

    workdir: WorkdirConfig = field(default_factory=WorkdirConfig)
    php: PhpConfig = field(default_factory=PhpConfig)
    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    composer: ComposerConfig = field(default_factory=ComposerConfig)
    packages: List[str] = field(default_factory=lambda: ["nginx"])
    sudo: bool = False
    dry_run: bool = False
    timeout: float = 60.0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ServerInitConfig":
        data = data or {}
        top = _pick(cls, data)
        for name in ("workdir", "php", "repository", "composer"):
            top.pop(name, None)
        config = cls(
            workdir=WorkdirConfig(**_pick(WorkdirConfig, data.get("workdir"))),
            php=PhpConfig(**_pick(PhpConfig, data.get("php"))),
            repository=RepositoryConfig(
                **_pick(RepositoryConfig, data.get("repository"))
            ),
            composer=ComposerConfig(**_pick(ComposerConfig, data.get("composer"))),
            **top,
        )
        return config

    def package_units(self) -> List[InstallableUnit]:
        """Web server packages followed by PHP packages, in install order"""
        return [InstallableUnit(name) for name in self.packages] + self.php.units()

    def validate(self) -> None:
        # a bare 8.10 in YAML/TOML arrives as the float 8.1
        if not isinstance(self.php.version, str):
            raise ConfigValidationError(
                f"PHP version must be a quoted string, got {self.php.version!r}",
                context={"php.version": self.php.version},
            )
        if not _PHP_VERSION_RE.match(self.php.version):
            raise ConfigValidationError(
                f"Invalid PHP version: {self.php.version!r} (expected e.g. 8.3)",
                context={"php.version": self.php.version},
            )
        if not self.php.extensions:
            raise ConfigValidationError("php.extensions must not be empty")
        if not self.composer.expected_digest:
            raise ConfigValidationError("composer.expected_digest must be set")
        if self.composer.algorithm not in hashlib.algorithms_available:
            raise ConfigValidationError(
                f"Unknown digest algorithm: {self.composer.algorithm}",
                context={"composer.algorithm": self.composer.algorithm},
            )
        if self.timeout <= 0:
            raise ConfigValidationError(
                "timeout must be positive", context={"timeout": self.timeout}
            )
        if not self.workdir.path:
            raise ConfigValidationError("workdir.path must be set")
