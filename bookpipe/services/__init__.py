# SPDX-License-Identifier: MIT
"""Pipeline services.

Services implement the pipeline stages, coordinating between the domain
layer (core/) and infrastructure (platform/, git/, the `gh` CLI).
"""

from bookpipe.services.build import BuildInvoker, TectonicInvoker
from bookpipe.services.checks import CheckResult, CheckStatus
from bookpipe.services.pipeline import Pipeline, PipelineReport, ReleaseTarget
from bookpipe.services.selector import SourceSelector, select_entry
from bookpipe.services.toolchain import ProvisionError, ToolchainChecker
from bookpipe.services.trigger import PipelineState, Trigger, TriggerEvent, decide

__all__ = [
    # Checks
    "CheckResult",
    "CheckStatus",
    "ProvisionError",
    "ToolchainChecker",
    # Stages
    "BuildInvoker",
    "SourceSelector",
    "TectonicInvoker",
    "select_entry",
    # Orchestration
    "Pipeline",
    "PipelineReport",
    "PipelineState",
    "ReleaseTarget",
    "Trigger",
    "TriggerEvent",
    "decide",
]
