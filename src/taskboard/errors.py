"""Error taxonomy shared by services and the HTTP layer.

Services raise these; main.create_app() registers a handler that renders
any of them as {"error": message} with the matching status code. Keeping
the status code on the exception means routes never translate errors by
hand.
"""


class TaskboardError(Exception):
    """Base class for errors that map to a client-facing response."""

    status_code = 500
    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TaskboardError):
    """Bad email, short password, missing required task field."""

    status_code = 400
    kind = "validation_error"


class AuthenticationError(TaskboardError):
    """Bad credentials, or a route that needs a logged-in user."""

    status_code = 401
    kind = "authentication_error"


class IdentificationMissing(TaskboardError):
    """Neither a bearer token nor an anonymous cookie was resolvable."""

    status_code = 400
    kind = "identification_missing"

    def __init__(self, message: str = "User identification missing"):
        super().__init__(message)


class Forbidden(TaskboardError):
    """Identity resolved, but it does not own the task."""

    status_code = 403
    kind = "forbidden"


class NotFound(TaskboardError):
    status_code = 404
    kind = "not_found"


class StoreError(TaskboardError):
    """Unexpected persistence failure. Driver detail stays in the logs."""

    status_code = 500
    kind = "store_error"
