"""Job orchestration: the fixed step plan and its sequential executor."""

from .factory import OrchestratorContext, build_orchestrator
from .orchestrator import JobOrchestrator
from .steps import Step, StepAction, build_default_plan, validate_plan

__all__ = [
    "JobOrchestrator",
    "OrchestratorContext",
    "Step",
    "StepAction",
    "build_default_plan",
    "build_orchestrator",
    "validate_plan",
]
