"""
Step pipeline

Runs steps in a fixed order and stops at the first failure.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from loguru import logger

from serverinit.exceptions import ConfigValidationError
from serverinit.steps import ProvisionContext, Step


@dataclass
class PipelineResult:
    ran_steps: List[str] = field(default_factory=list)
    skipped_steps: List[str] = field(default_factory=list)


def _check_step_id(steps: Sequence[Step], step_id: Optional[str], option: str):
    if step_id is None:
        return
    known = [s.step_id for s in steps]
    if step_id not in known:
        raise ConfigValidationError(
            f"Unknown step for {option}: {step_id}",
            context={"step": step_id, "known": known},
        )


async def run_pipeline(
    ctx: ProvisionContext,
    steps: Sequence[Step],
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
) -> PipelineResult:
    """
    Run steps in order.

    Steps before ``start_at`` are skipped; nothing runs after ``stop_after``.
    The first exception propagates unchanged.
    """
    _check_step_id(steps, start_at, "start_at")
    _check_step_id(steps, stop_after, "stop_after")

    result = PipelineResult()
    started = start_at is None

    for step in steps:
        if not started:
            if step.step_id == start_at:
                started = True
            else:
                logger.debug(f"[step] skipping {step.step_id}")
                result.skipped_steps.append(step.step_id)
                continue

        logger.success(f"[step] {step.step_id}: {step.description}...")
        await step.run(ctx)
        result.ran_steps.append(step.step_id)

        if stop_after is not None and step.step_id == stop_after:
            logger.info(f"[step] stopping after {stop_after}")
            break

    return result
