class PortalException(Exception):
    """Base exception for the portal"""
    def __init__(self, message, code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['error'] = self.message
        rv['success'] = False
        return rv

class ValidationError(PortalException):
    """Bad input"""
    def __init__(self, message="Invalid data", payload=None):
        super().__init__(message, code=400, payload=payload)

class Unauthorized(PortalException):
    def __init__(self, message="Unauthorized", payload=None):
        super().__init__(message, code=401, payload=payload)

class PermissionDenied(PortalException):
    """Not allowed"""
    def __init__(self, message="Access denied", payload=None):
        super().__init__(message, code=403, payload=payload)

class NotFound(PortalException):
    def __init__(self, message="Not found", payload=None):
        super().__init__(message, code=404, payload=payload)

class Conflict(PortalException):
    def __init__(self, message="Conflict", payload=None):
        super().__init__(message, code=409, payload=payload)

class RateLimited(PortalException):
    def __init__(self, message="Too many requests. Please try again later.", payload=None):
        super().__init__(message, code=429, payload=payload)
