"""Domain exceptions for the application.

Every public operation reports failure through one of these kinds. The
``code`` attribute is the machine-readable error kind sent to clients.
"""


class ReelNotesError(Exception):
    """Base exception for all domain errors."""

    code = "internal"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UnauthenticatedError(ReelNotesError):
    """Raised when an operation requires a verified identity and none is present."""

    code = "unauthenticated"

    def __init__(self, message: str = "User must be authenticated"):
        super().__init__(message)


class InvalidArgumentError(ReelNotesError):
    """Raised when a required field is missing or malformed.

    Attributes:
        parameter: Name of the invalid parameter
    """

    code = "invalid-argument"

    def __init__(self, parameter: str, message: str):
        self.parameter = parameter
        super().__init__(f"Invalid parameter '{parameter}': {message}")


class NotFoundError(ReelNotesError):
    """Raised when a referenced project, comment or blob does not exist.

    Attributes:
        resource: Kind of resource, e.g. "project" or "comment"
        resource_id: The identifier that was not found
    """

    code = "not-found"

    def __init__(self, resource: str, resource_id: str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource.capitalize()} not found: {resource_id}")


class ProjectNotFoundError(NotFoundError):
    """Raised when a requested project does not exist."""

    def __init__(self, project_id: str):
        super().__init__("project", project_id)


class CommentNotFoundError(NotFoundError):
    """Raised when a requested comment does not exist in its project."""

    def __init__(self, comment_id: str):
        super().__init__("comment", comment_id)


class PermissionDeniedError(ReelNotesError):
    """Raised when an identity lacks the role an operation requires."""

    code = "permission-denied"


class InternalError(ReelNotesError):
    """Raised when a collaborator boundary (database, storage) fails unexpectedly."""

    code = "internal"


class ShareableLinkCollisionError(InternalError):
    """Raised when a generated shareable link token is already taken."""

    def __init__(self, token: str):
        self.token = token
        super().__init__("Shareable link token already in use")
