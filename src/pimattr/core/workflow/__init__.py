from .stepper import ConfirmCallback, StepperWorkflow, SubmitResult, SubmitStatus
from .steps import STEP_ORDER, STEP_VALIDATORS, StepId

__all__ = [
    "ConfirmCallback",
    "StepperWorkflow",
    "SubmitResult",
    "SubmitStatus",
    "STEP_ORDER",
    "STEP_VALIDATORS",
    "StepId",
]
