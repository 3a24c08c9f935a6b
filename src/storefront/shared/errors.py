"""Error taxonomy shared by the storefront use cases.

Every rule violation is raised as one of these and left to propagate; the HTTP
adapter (``storefront.api.errors``) turns them into responses. ``kind`` is the
machine-discriminable name, ``message`` is safe to show to the customer or the
merchant, ``field`` optionally points at the offending input.
"""


class StorefrontError(Exception):
    kind = "internal"
    status_code = 500

    def __init__(self, message, field=None):
        super().__init__(message)
        self.message = message
        self.field = field

    @property
    def messages(self):
        """Field-keyed messages, in the same shape as Protean's ValidationError."""
        return {self.field or "_entity": [self.message]}

    def to_dict(self):
        return {"kind": self.kind, "message": self.message, "field": self.field}


class BadRequestError(StorefrontError):
    """The request is malformed: a required field is missing or has the wrong shape."""

    kind = "bad_request"
    status_code = 400


class NotFoundError(StorefrontError):
    """A referenced merchant, product or order does not exist for this merchant."""

    kind = "not_found"
    status_code = 404


class ConflictError(StorefrontError):
    """The target exists but its current state forbids the requested change."""

    kind = "conflict"
    status_code = 409


class UnprocessableError(StorefrontError):
    """Well-formed input that breaks a business rule."""

    kind = "unprocessable"
    status_code = 422
