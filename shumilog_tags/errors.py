"""
Exceptions raised by the tag engine.

Every error carries a machine-readable code and a message, so the route layer
can map them to HTTP responses without parsing message text:

    NOT_FOUND        -> 404
    ALREADY_EXISTS   -> 409
    NO_FIELDS        -> 400
    SELF_ASSOCIATION -> 400

They derive from ValueError, so callers that only catch ValueError keep working.
"""


class TagError(ValueError):
    """
    Base class for all tag engine errors.

    Usage:
        raise TagError(code="NOT_FOUND", message="Tag not found")
    """

    def __init__(self, code: str, message: str, details: list[dict] | None = None):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(TagError):
    """
    Resource does not exist.

    Usage:
        raise NotFoundError("Tag", "3f0c...")
        # message: "Tag with id=3f0c... not found"
    """

    def __init__(self, resource: str, resource_id: str | int):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(
            code="NOT_FOUND",
            message=f"{resource} with id={resource_id} not found",
        )


class DuplicateNameError(TagError):
    """A tag with this name already exists."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            code="ALREADY_EXISTS",
            message=f"Tag with name='{name}' already exists",
            details=[{"field": "name", "message": f"'{name}' is already in use"}],
        )


class NoFieldsProvidedError(TagError):
    """Update called with an empty patch."""

    def __init__(self):
        super().__init__(code="NO_FIELDS", message="No fields to update")


class SelfAssociationError(TagError):
    """Explicit association from a tag to itself."""

    def __init__(self, tag_id: str):
        self.tag_id = tag_id
        super().__init__(
            code="SELF_ASSOCIATION",
            message=f"Cannot associate tag {tag_id} with itself (self-association)",
        )
