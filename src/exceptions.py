class LedgerException(Exception):
    kind = "INTERNAL"
    status_code = 500

    def __init__(self, message=None):
        super().__init__(message or self.kind)
        self.message = message or self.kind

    def to_dict(self):
        return {"error": self.kind, "message": self.message}

class InvalidInputException(LedgerException):
    kind = "INVALID_INPUT"
    status_code = 400

class ResourceNotFoundException(LedgerException):
    kind = "NOT_FOUND"
    status_code = 404

class InsufficientStockException(LedgerException):
    kind = "INSUFFICIENT_STOCK"
    status_code = 409

class OverPaymentException(LedgerException):
    kind = "OVER_PAYMENT"
    status_code = 422

class ConflictException(LedgerException):
    kind = "CONFLICT"
    status_code = 409

class InternalException(LedgerException):
    kind = "INTERNAL"
    status_code = 500
