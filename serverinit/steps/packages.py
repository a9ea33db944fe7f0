from serverinit.steps.base import ProvisionContext, Step


class InstallPackagesStep(Step):
    step_id = "50_install_packages"
    description = "Installing the web server, PHP and PHP extensions"

    async def run(self, ctx: ProvisionContext) -> None:
        names = [unit.resolve() for unit in ctx.config.package_units()]
        await ctx.apt.install(names)
        ctx.facts["packages"] = names
