"""
Main orchestrator

Wires configuration, command runner, apt client and fetcher together and
runs the provisioning pipeline.
"""

from pathlib import Path
from typing import List, Optional

from loguru import logger

from serverinit.download import VerifiedFetcher
from serverinit.models import ServerInitConfig
from serverinit.pipeline import PipelineResult, run_pipeline
from serverinit.services import AptClient, CommandRunner
from serverinit.steps import ProvisionContext, Step, build_steps


class ServerInitOrchestrator:
    """serverinit orchestrator"""

    def __init__(
        self,
        config: ServerInitConfig,
        runner: Optional[CommandRunner] = None,
        fetcher: Optional[VerifiedFetcher] = None,
        steps: Optional[List[Step]] = None,
    ):
        self.config = config
        self.runner = runner or CommandRunner(sudo=config.sudo, dry_run=config.dry_run)
        self.fetcher = fetcher or VerifiedFetcher(timeout=config.timeout)
        self.apt = AptClient(self.runner)
        self.steps = steps if steps is not None else build_steps()
        self.context = ProvisionContext(
            config=config,
            base_dir=Path(config.workdir.path),
            runner=self.runner,
            apt=self.apt,
            fetcher=self.fetcher,
        )
        self.result: Optional[PipelineResult] = None

    async def run(
        self, start_at: Optional[str] = None, stop_after: Optional[str] = None
    ) -> PipelineResult:
        """Run the full provisioning flow"""
        logger.info("Starting server provisioning...")

        try:
            self.config.validate()
            self.result = await run_pipeline(
                self.context, self.steps, start_at=start_at, stop_after=stop_after
            )
            if self.completed:
                logger.success(
                    f"Server setup is complete! nginx, PHP {self.config.php.version} "
                    f"and Composer are ready."
                )
            else:
                logger.info(
                    f"Partial run finished: {', '.join(self.result.ran_steps) or 'no steps'}"
                )
            return self.result

        except Exception as e:
            logger.error(f"Provisioning failed: {e}")
            raise
        finally:
            await self.fetcher.close()

    @property
    def completed(self) -> bool:
        """True when the last step of the pipeline ran"""
        if self.result is None or not self.steps:
            return False
        return self.steps[-1].step_id in self.result.ran_steps

    def get_stats(self) -> dict:
        result = self.result or PipelineResult()
        return {
            "ran_steps": list(result.ran_steps),
            "skipped_steps": list(result.skipped_steps),
            "facts": dict(self.context.facts),
        }
