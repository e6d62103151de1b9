"""Exceptions raised across the domain boundary."""


class StoreFailure(Exception):
    """The backing store rejected a read or write.

    The unit of work has already rolled back when this is raised.
    """

    def __init__(self, operation: str, cause: Exception):
        super().__init__(f"Store failure during {operation}: {cause}")
        self.operation = operation
        self.cause = cause
