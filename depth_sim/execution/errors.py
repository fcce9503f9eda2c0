"""
Exceptions raised inside the simulation engine.

**Conceptual**: These exceptions never leave `simulate`. The orchestrator
catches them and turns them into an ErrorResult, so callers always receive a
value to render. Empty book sides are not exceptions at all; they are reported
as a Failed result.
"""


class SimulationError(Exception):
    """
    Base exception for simulation faults.

    Attributes:
        reason: Short machine-friendly reason echoed into the ErrorResult.
    """

    def __init__(self, reason: str, detail: str = ""):
        self.reason = reason
        self.detail = detail
        super().__init__(f"{reason}: {detail}" if detail else reason)


class SimulationValidationError(SimulationError):
    """
    Raised when a request fails shape or numeric preconditions.

    Examples: non-positive quantity, Limit request without a limit price.
    """
    pass


class ComputationError(SimulationError):
    """
    Raised when an intermediate value is unexpectedly undefined or non-finite.

    **Recovery**: None inside the engine; the orchestrator reports it as an
    Error result with the diagnostic detail.
    """
    pass
