"""Client for the patient exercise workflow."""

from .api import DEFAULT_BASE_URL, PhysioCenterClient
from .errors import ApiError, ClientError, ToggleInFlightError, describe_error
from .exercises import CompletionSubmitter, ExerciseListController
from .models import Exercise
from .feedback import FeedbackData, FeedbackWizard, WizardState, WizardStateError

__all__ = [
    "DEFAULT_BASE_URL",
    "PhysioCenterClient",
    "ApiError",
    "ClientError",
    "ToggleInFlightError",
    "describe_error",
    "CompletionSubmitter",
    "ExerciseListController",
    "Exercise",
    "FeedbackData",
    "FeedbackWizard",
    "WizardState",
    "WizardStateError",
]
