"""
Error Types

Every failure the services raise carries a machine-readable ``code`` and
a message that is safe to show to the user.
"""


class MealPlannerError(Exception):
    """Base class for errors surfaced to the caller."""
    code = 'error'
    status = 500
    default_message = 'Something went wrong'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {'code': self.code, 'message': self.message}


class NotFound(MealPlannerError):
    """Resource is missing or not visible to the caller. The two are not distinguished."""
    code = 'not_found'
    status = 404
    default_message = 'Not found'


class ValidationError(MealPlannerError):
    """Input was rejected before or by storage."""
    code = 'validation_error'
    status = 400
    default_message = 'Invalid input'


class AuthorizationError(MealPlannerError):
    """Caller is not allowed to perform the write."""
    code = 'forbidden'
    status = 403
    default_message = 'You do not have permission to do that'


class StorageError(MealPlannerError):
    """Storage rejected or failed an operation."""
    code = 'storage_error'
    status = 500
    default_message = 'Storage operation failed'


class UniqueViolation(StorageError):
    """A unique constraint rejected an insert or update."""
    code = 'unique_violation'
    status = 409
    default_message = 'Record already exists'


class TransientStorageError(StorageError):
    """Network or backend failure. The operation may succeed if retried."""
    code = 'transient_storage_error'
    status = 503
    default_message = 'Storage is temporarily unavailable'


_BY_CODE = {cls.code: cls for cls in (
    MealPlannerError, NotFound, ValidationError, AuthorizationError,
    StorageError, UniqueViolation, TransientStorageError,
)}


def error_for_code(code, message=None):
    """Rebuild an error from its code, e.g. one recorded on a store."""
    return _BY_CODE.get(code, MealPlannerError)(message)
