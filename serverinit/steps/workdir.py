import getpass
import os
from pathlib import Path

from loguru import logger

from serverinit.exceptions import FilesystemError
from serverinit.steps.base import ProvisionContext, Step


def default_owner() -> str:
    """The invoking user, seen through sudo"""
    return os.environ.get("SUDO_USER") or getpass.getuser()


class PrepareWorkdirStep(Step):
    step_id = "10_prepare_workdir"
    description = "Creating and configuring the working directory"

    async def run(self, ctx: ProvisionContext) -> None:
        cfg = ctx.config.workdir
        base = str(ctx.base_dir)

        await ctx.runner.run(["mkdir", "-p", base], privileged=True)

        if ctx.runner.sudo or cfg.owner:
            owner = cfg.owner or default_owner()
            await ctx.runner.run(["chown", "-R", owner, base], privileged=True)

        for name in cfg.subdirs:
            sub = Path(base) / name
            if ctx.dry_run:
                logger.info(f"[step] would create {sub}")
                continue
            try:
                sub.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise FilesystemError(
                    f"Cannot create {sub}", context={"path": str(sub), "error": str(e)}
                ) from e

        ctx.facts["workdir"] = base
