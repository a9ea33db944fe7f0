"""
Provisioning steps, in execution order.
"""

from serverinit.steps.base import ProvisionContext, Step
from serverinit.steps.workdir import PrepareWorkdirStep
from serverinit.steps.system import UpgradeSystemStep, InstallRepoDepsStep
from serverinit.steps.repository import AddPhpRepositoryStep
from serverinit.steps.packages import InstallPackagesStep
from serverinit.steps.composer import InstallComposerStep
from serverinit.steps.report import ReportVersionsStep


def build_steps() -> list:
    return [
        PrepareWorkdirStep(),
        UpgradeSystemStep(),
        InstallRepoDepsStep(),
        AddPhpRepositoryStep(),
        InstallPackagesStep(),
        InstallComposerStep(),
        ReportVersionsStep(),
    ]


__all__ = [
    "ProvisionContext",
    "Step",
    "PrepareWorkdirStep",
    "UpgradeSystemStep",
    "InstallRepoDepsStep",
    "AddPhpRepositoryStep",
    "InstallPackagesStep",
    "InstallComposerStep",
    "ReportVersionsStep",
    "build_steps",
]
