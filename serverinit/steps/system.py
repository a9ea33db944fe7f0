from serverinit.steps.base import ProvisionContext, Step


class UpgradeSystemStep(Step):
    step_id = "20_upgrade_system"
    description = "Updating and upgrading system packages"

    async def run(self, ctx: ProvisionContext) -> None:
        await ctx.apt.update()
        await ctx.apt.list_upgradable()
        await ctx.apt.upgrade()


class InstallRepoDepsStep(Step):
    step_id = "30_install_repo_deps"
    description = "Installing dependencies for repositories"

    async def run(self, ctx: ProvisionContext) -> None:
        await ctx.apt.install(ctx.config.repository.dependencies)
