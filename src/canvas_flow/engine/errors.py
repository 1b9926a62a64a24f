"""
Error taxonomy for plan execution.

Handlers catch ``CanvasFlowError``, log it and record it on the execution
report; anything else is unexpected and propagates to the caller.
"""


class CanvasFlowError(Exception):
    """Base class for anticipated plan-execution failures."""


class ConfigMismatch(CanvasFlowError):
    """More batch configs were supplied than nodes requested."""

    def __init__(self, step_id: str, requested: int, provided: int):
        self.step_id = step_id
        self.requested = requested
        self.provided = provided
        super().__init__(
            f"step {step_id}: {provided} batch configs for {requested} nodes, "
            f"using the first {requested}"
        )


class MissingReference(CanvasFlowError):
    """A step id or node index could not be resolved."""

    def __init__(self, step_id: str | None, reference: str):
        self.step_id = step_id
        self.reference = reference
        super().__init__(f"step {step_id}: unresolved reference {reference}")


class PersistenceFailure(CanvasFlowError):
    """A durable write failed; local state is kept as is."""

    def __init__(self, operation: str, target_id: str, cause: BaseException | None = None):
        self.operation = operation
        self.target_id = target_id
        self.cause = cause
        super().__init__(f"{operation} failed for {target_id}: {cause}")


class ExternalServiceFailure(CanvasFlowError):
    """Prompt completion failed or answered with degenerate output."""

    def __init__(self, service: str, reason: str):
        self.service = service
        self.reason = reason
        super().__init__(f"{service}: {reason}")


class UserInputValidation(CanvasFlowError):
    """Input rejected before any state mutation."""

    def __init__(self, user_message: str):
        self.user_message = user_message
        super().__init__(user_message)
