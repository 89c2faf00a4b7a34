from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, List, Optional, TypeVar

ContextT = TypeVar("ContextT")


@dataclass
class PipelineStep(Generic[ContextT]):
    """Named step in the question pipeline."""
    name: str
    fn: Callable[[ContextT], None]
    skip_if: Optional[Callable[[ContextT], bool]] = None


class PipelineRunner(Generic[ContextT]):
    """Run steps in order until one of them marks the context as finished."""

    def __init__(self, steps: List[PipelineStep[ContextT]], is_done: Callable[[ContextT], bool]) -> None:
        """Purpose: Initialize the runner with ordered steps and a stop predicate.
        Inputs/Outputs: Inputs are the step list and a done predicate; no return value.
        Side Effects / State: Stores the steps for later execution.
        Dependencies: None beyond PipelineStep definitions.
        Failure Modes: None; assumes valid callables in steps.
        If Removed: The agent cannot route questions through its stages.
        Testing Notes: Verify a step that finishes the context stops later steps.
        """
        # Keep steps in declaration order; order is the routing priority.
        self._steps = steps
        self._is_done = is_done

    @property
    def step_names(self) -> List[str]:
        return [step.name for step in self._steps]

    def run(self, context: ContextT) -> Optional[str]:
        """Run steps; return the name of the step that finished the context, if any."""
        for step in self._steps:
            if self._is_done(context):
                break
            if step.skip_if and step.skip_if(context):
                continue
            step.fn(context)
            if self._is_done(context):
                return step.name
        return None
