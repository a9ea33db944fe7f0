"""
apt client

Thin wrappers that turn package operations into apt command invocations.
"""

from typing import Iterable

from loguru import logger

from serverinit.exceptions import ConfigValidationError
from serverinit.services.command import CmdResult, CommandRunner


SOURCES_DIR = "/etc/apt/sources.list.d"
KEYRING_DIR = "/etc/apt/trusted.gpg.d"

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


class AptClient:
    """apt client"""

    def __init__(
        self,
        runner: CommandRunner,
        sources_dir: str = SOURCES_DIR,
        keyring_dir: str = KEYRING_DIR,
    ):
        self.runner = runner
        self.sources_dir = sources_dir
        self.keyring_dir = keyring_dir

    async def _apt(self, *args: str) -> CmdResult:
        return await self.runner.run(["apt", *args], privileged=True, env=APT_ENV)

    async def update(self) -> CmdResult:
        return await self._apt("update")

    async def list_upgradable(self) -> CmdResult:
        return await self._apt("list", "--upgradable")

    async def upgrade(self) -> CmdResult:
        return await self._apt("upgrade", "-y")

    async def install(self, packages: Iterable[str]) -> CmdResult:
        names = [str(p) for p in packages]
        if not names:
            raise ConfigValidationError("No packages to install")
        logger.info(f"[apt] installing: {' '.join(names)}")
        return await self._apt("install", "-y", *names)

    async def add_source(self, name: str, line: str) -> str:
        """Write a one-line source list, return its path"""
        path = f"{self.sources_dir}/{name}.list"
        await self.runner.run(
            ["tee", path], privileged=True, input_data=line.rstrip("\n") + "\n"
        )
        return path

    async def add_key(self, name: str, key: bytes) -> str:
        """Install a binary signing keyring, return its path"""
        path = f"{self.keyring_dir}/{name}.gpg"
        await self.runner.run(["tee", path], privileged=True, input_data=key)
        return path

    async def codename(self) -> str:
        result = await self.runner.run(["lsb_release", "-sc"])
        return result.stdout.strip()
