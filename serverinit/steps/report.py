from loguru import logger

from serverinit.steps.base import ProvisionContext, Step


class ReportVersionsStep(Step):
    step_id = "70_report_versions"
    description = "Verifying Composer and PHP installations"

    async def run(self, ctx: ProvisionContext) -> None:
        versions = {}
        for name, argv in (
            ("composer", ["composer", "--version"]),
            ("php", ["php", "-v"]),
        ):
            result = await ctx.runner.run(argv)
            output = result.stdout.strip()
            first_line = output.splitlines()[0] if output else ""
            versions[name] = first_line
            if first_line:
                logger.info(f"[step] {first_line}")
        ctx.facts["versions"] = versions
