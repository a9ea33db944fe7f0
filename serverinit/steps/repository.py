from loguru import logger

from serverinit.exceptions import StepError
from serverinit.steps.base import ProvisionContext, Step


class AddPhpRepositoryStep(Step):
    step_id = "40_add_php_repository"
    description = "Adding the PHP apt repository"

    async def run(self, ctx: ProvisionContext) -> None:
        repo = ctx.config.repository

        codename = repo.codename or await ctx.apt.codename()
        if not codename:
            if not ctx.dry_run:
                raise StepError("Could not detect the distribution codename")
            codename = "<codename>"
        ctx.facts["codename"] = codename

        source = await ctx.apt.add_source(repo.name, repo.source_line(codename))
        logger.info(f"[step] source list written: {source}")

        if ctx.dry_run:
            logger.info(f"[step] would fetch signing key {repo.key_url}")
        else:
            key = await ctx.fetcher.fetch_bytes(repo.key_url)
            keyring = await ctx.apt.add_key(repo.name, key)
            logger.info(f"[step] signing key installed: {keyring}")

        await ctx.apt.update()
