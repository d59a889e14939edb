"""Placement of the built-in stages.

Within a step, higher priority runs first. Custom middleware can slot
between built-in stages by picking a priority between theirs.
"""

from dataclasses import dataclass

from volc_core.middleware.stack import MiddlewareOptions
from volc_core.models.enums import Step


@dataclass(frozen=True)
class StagePlacement:
    step: Step
    priority: int


PRIORITY: dict[str, StagePlacement] = {
    # initialize: headers, then credentials, then endpoint
    "defaultHeadersMiddleware": StagePlacement(Step.INITIALIZE, 150),
    "credentialsMiddleware": StagePlacement(Step.INITIALIZE, 100),
    "endpointMiddleware": StagePlacement(Step.INITIALIZE, 50),
    "dotNMiddleware": StagePlacement(Step.SERIALIZE, 50),
    "signerMiddleware": StagePlacement(Step.BUILD, 100),
    # retry wraps the HTTP stage
    "retryMiddleware": StagePlacement(Step.FINALIZE_REQUEST, 100),
    "httpRequestMiddleware": StagePlacement(Step.FINALIZE_REQUEST, 50),
}


def stage_options(name: str) -> MiddlewareOptions:
    """Return the registration options of the built-in stage ``name``."""
    placement = PRIORITY[name]
    return MiddlewareOptions(step=placement.step, name=name, priority=placement.priority)


__all__ = ["PRIORITY", "StagePlacement", "stage_options"]
