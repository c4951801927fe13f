"""Domain exceptions raised by the access-control layer."""

from siteaccess.core.messages import AccessMessages


class AccessDenied(PermissionError):
    """A write was rejected by its table policy.

    The message never varies with the target row so callers cannot probe
    for the existence of resources they cannot see.
    """

    def __init__(self) -> None:
        super().__init__(AccessMessages.NOT_PERMITTED)


class ConstraintViolation(ValueError):
    """A value fell outside its enumerated domain."""

    def __init__(self, message: str, *, field: str | None = None, value: object = None) -> None:
        super().__init__(message)
        self.field = field
        self.value = value


class RecursiveEvaluationError(RuntimeError):
    """A policy predicate tried to evaluate the policy of the table it protects."""

    def __init__(self, table: str) -> None:
        super().__init__(f"{AccessMessages.RECURSIVE_POLICY}: {table}")
        self.table = table
