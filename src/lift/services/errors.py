"""Service-layer exceptions."""


class SnapshotError(Exception):
    """Raised when a session snapshot cannot be restored."""


class StepBudgetExceeded(Exception):
    """Raised when evaluation runs past the host-supplied step budget."""

    def __init__(self, budget: int) -> None:
        super().__init__(f"Evaluation exceeded the step budget of {budget} steps.")
        self.budget = budget
