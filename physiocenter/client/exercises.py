"""Patient-side exercise list and completion workflow."""

import logging
from typing import List, Optional

from .models import Exercise
from .api import PhysioCenterClient
from .errors import ToggleInFlightError
from .feedback import FeedbackData, FeedbackWizard, WizardState, WizardStateError

logger = logging.getLogger(__name__)


class CompletionSubmitter:
    """Sends completion toggles, one at a time per exercise."""

    def __init__(self, api: PhysioCenterClient):
        self.api = api
        self._in_flight = set()

    def is_pending(self, exercise_id: str) -> bool:
        return exercise_id in self._in_flight

    async def submit(
        self,
        exercise_id: str,
        current_completed: bool,
        feedback: Optional[FeedbackData] = None,
    ) -> Exercise:
        """Request the opposite of ``current_completed`` and return the server's view.

        Errors propagate unchanged; nothing is retried.
        """
        if exercise_id in self._in_flight:
            raise ToggleInFlightError(exercise_id)

        self._in_flight.add(exercise_id)
        try:
            updated = await self.api.toggle_completion(exercise_id, not current_completed, feedback)
        finally:
            self._in_flight.discard(exercise_id)

        logger.info(f"Exercise {exercise_id} completed={updated.completed}")
        return updated


class ExerciseListController:
    """Holds today's exercises and drives the check / feedback / toggle flow."""

    def __init__(self, api: PhysioCenterClient, submitter: Optional[CompletionSubmitter] = None):
        self.api = api
        self.submitter = submitter or CompletionSubmitter(api)
        self.exercises: List[Exercise] = []
        self.dialog: Optional[FeedbackWizard] = None
        self._dialog_exercise_id: Optional[str] = None

    @property
    def completed_count(self) -> int:
        return sum(1 for exercise in self.exercises if exercise.completed)

    @property
    def total_count(self) -> int:
        return len(self.exercises)

    def get(self, exercise_id: str) -> Exercise:
        for exercise in self.exercises:
            if exercise.id == exercise_id:
                return exercise
        raise KeyError(exercise_id)

    async def load(self) -> List[Exercise]:
        self.exercises = await self.api.get_today_exercises()
        return self.exercises

    async def check(self, exercise_id: str) -> Optional[FeedbackWizard]:
        """Handle a click on an exercise's checkbox.

        Marking an exercise done opens the feedback dialog and returns it;
        nothing is sent until :meth:`confirm`. Unchecking a done exercise is
        sent straight away and returns ``None``.
        """
        exercise = self.get(exercise_id)
        if not exercise.completed:
            self.dialog = FeedbackWizard(exercise.title)
            self._dialog_exercise_id = exercise_id
            self.dialog.open()
            return self.dialog

        await self._submit(exercise, None)
        return None

    async def confirm(self) -> Optional[Exercise]:
        """Finish the open feedback flow once the dialog has terminated.

        A submitted dialog sends the toggle with its feedback; a cancelled
        one sends nothing and returns ``None``.
        """
        wizard, exercise_id = self.dialog, self._dialog_exercise_id
        if wizard is None:
            raise WizardStateError("No feedback dialog to confirm")
        if not wizard.is_finished:
            raise WizardStateError(f"Feedback dialog is still at step {wizard.step}")

        self.dialog = None
        self._dialog_exercise_id = None
        if wizard.state == WizardState.CANCELLED:
            return None

        return await self._submit(self.get(exercise_id), wizard.result)

    async def _submit(self, exercise: Exercise, feedback: Optional[FeedbackData]) -> Exercise:
        # Local state only changes once the server has answered
        updated = await self.submitter.submit(exercise.id, exercise.completed, feedback)
        self.exercises = [updated if item.id == updated.id else item for item in self.exercises]
        return updated
