"""
Composer installation

The installer is only executed after its digest matches the pinned value.
"""

import os

from loguru import logger

from serverinit.exceptions import FilesystemError
from serverinit.steps.base import ProvisionContext, Step


class InstallComposerStep(Step):
    step_id = "60_install_composer"
    description = "Installing Composer (PHP dependency manager)"

    async def run(self, ctx: ProvisionContext) -> None:
        cfg = ctx.config.composer
        installer = ctx.base_dir / cfg.installer_name
        phar = ctx.base_dir / "composer.phar"

        if ctx.dry_run:
            logger.info(
                f"[step] would fetch {cfg.installer_url} and check "
                f"{cfg.algorithm} {cfg.expected_digest}"
            )
            await ctx.runner.run(["php", installer.name], cwd=str(ctx.base_dir))
            await ctx.runner.run(["mv", str(phar), cfg.install_path], privileged=True)
            return

        # raises DigestMismatchError with the installer already removed
        artifact = await ctx.fetcher.fetch_and_verify(
            cfg.installer_url, installer, cfg.expected_digest, cfg.algorithm
        )
        logger.success("Composer installer verified successfully.")

        try:
            await ctx.runner.run(["php", artifact.path.name], cwd=str(ctx.base_dir))
        finally:
            self._unlink(artifact.path)

        await ctx.runner.run(["mv", str(phar), cfg.install_path], privileged=True)
        ctx.facts["composer_path"] = cfg.install_path

    @staticmethod
    def _unlink(path) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise FilesystemError(
                f"Cannot remove {path}", context={"file": str(path), "error": str(e)}
            ) from e
