"""Three-step feedback wizard shown before an exercise is marked done.

Step 1 asks for the pain level and the perceived difficulty, step 2 for the
dominant sensation and step 3 for the changes the patient made to the
exercise. No field is mandatory.
"""

import enum
from dataclasses import asdict, dataclass
from typing import Callable, Dict, Optional

PAIN_MIN = 0
PAIN_MAX = 10
DIFFICULTY_CHOICES = ("Facile", "Modéré", "Difficile", "Impossible")
DEFAULT_DIFFICULTY = "Modéré"


class WizardState(str, enum.Enum):
    PAIN_DIFFICULTY = "step-1-pain-difficulty"
    SENSATION = "step-2-sensation"
    MODIFICATIONS = "step-3-modifications"
    SUBMITTED = "submitted"
    CANCELLED = "cancelled"


STEPS = (WizardState.PAIN_DIFFICULTY, WizardState.SENSATION, WizardState.MODIFICATIONS)


@dataclass(frozen=True)
class FeedbackData:
    douleur: int = 0
    difficulte: str = DEFAULT_DIFFICULTY
    ressenti: str = ""
    modifications: str = ""

    def to_payload(self) -> Dict[str, object]:
        return asdict(self)


class WizardStateError(RuntimeError):
    """The wizard was driven from a state that does not allow the action."""


class FeedbackWizard:
    def __init__(
        self,
        exercise_title: str,
        on_confirm: Optional[Callable[[FeedbackData], None]] = None,
        on_cancel: Optional[Callable[[], None]] = None,
    ):
        self.exercise_title = exercise_title
        self.on_confirm = on_confirm
        self.on_cancel = on_cancel
        self.is_open = False
        self.result: Optional[FeedbackData] = None
        self._reset()

    def _reset(self):
        self._state = WizardState.PAIN_DIFFICULTY
        self._last_step = 1
        self.douleur = PAIN_MIN
        self.difficulte = DEFAULT_DIFFICULTY
        self.ressenti = ""
        self.modifications = ""
        self.result = None

    def open(self):
        """Show the dialog, always starting over from step 1."""
        self._reset()
        self.is_open = True

    @property
    def state(self) -> WizardState:
        return self._state

    @property
    def step(self) -> int:
        """Current step number, 1 to 3. Terminal states report the last step shown."""
        if self._state in STEPS:
            return STEPS.index(self._state) + 1
        return self._last_step

    @property
    def is_finished(self) -> bool:
        return self._state in (WizardState.SUBMITTED, WizardState.CANCELLED)

    @property
    def back_label(self) -> str:
        return "Annuler" if self.step == 1 else "Retour"

    @property
    def next_label(self) -> str:
        return "Terminer" if self.step == len(STEPS) else "Suivant"

    def set_pain(self, level: int):
        self._require_open()
        if isinstance(level, bool) or not isinstance(level, int) or not PAIN_MIN <= level <= PAIN_MAX:
            raise ValueError(f"Pain level must be an integer between {PAIN_MIN} and {PAIN_MAX}")
        self.douleur = level

    def set_difficulty(self, value: str):
        self._require_open()
        if value not in DIFFICULTY_CHOICES:
            raise ValueError(f"Difficulty must be one of {', '.join(DIFFICULTY_CHOICES)}")
        self.difficulte = value

    def set_sensation(self, text: str):
        self._require_open()
        self.ressenti = text

    def set_modifications(self, text: str):
        self._require_open()
        self.modifications = text

    def next(self) -> Optional[FeedbackData]:
        """Advance one step; on the last step, submit and return the feedback."""
        self._require_open()
        index = STEPS.index(self._state)
        if index < len(STEPS) - 1:
            self._state = STEPS[index + 1]
            return None
        return self._submit()

    def back(self):
        """Go back one step; on step 1 this cancels the dialog."""
        self._require_open()
        index = STEPS.index(self._state)
        if index == 0:
            self.cancel()
            return
        self._state = STEPS[index - 1]

    def cancel(self):
        """Close the dialog without emitting any feedback."""
        self._require_open()
        self._finish(WizardState.CANCELLED)
        if self.on_cancel:
            self.on_cancel()

    # Closing the dialog by any other means is a cancellation
    dismiss = cancel

    def _submit(self) -> FeedbackData:
        self.result = FeedbackData(
            douleur=self.douleur,
            difficulte=self.difficulte,
            ressenti=self.ressenti,
            modifications=self.modifications,
        )
        self._finish(WizardState.SUBMITTED)
        if self.on_confirm:
            self.on_confirm(self.result)
        return self.result

    def _finish(self, state: WizardState):
        self._last_step = self.step
        self._state = state
        self.is_open = False

    def _require_open(self):
        if not self.is_open:
            raise WizardStateError(f"Feedback dialog for '{self.exercise_title}' is not open")
