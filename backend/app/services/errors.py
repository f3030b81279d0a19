
class ServiceError(Exception):
    """Base error for domain services; routes translate these into HTTP responses."""


class NotFoundError(ServiceError):
    pass


class ConflictError(ServiceError):
    pass
