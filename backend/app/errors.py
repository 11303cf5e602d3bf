from __future__ import annotations
from dataclasses import dataclass, asdict
from fastapi import HTTPException


@dataclass(frozen=True)
class Problem:
    field: str
    message: str


class EntryError(Exception):
    """Base for every failure the entry workflow reports to a caller."""
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__

    def detail(self):
        return self.message


class InvalidInput(EntryError):
    status_code = 400

class MissingField(InvalidInput):
    pass

class InvalidCategory(InvalidInput):
    pass


class ValidationFailure(EntryError):
    status_code = 400

    def __init__(self, problems: list[Problem]):
        super().__init__("; ".join(p.message for p in problems) or "Invalid entry")
        self.problems = list(problems)

    def detail(self):
        return {"error": "Validation failed", "problems": [asdict(p) for p in self.problems]}


class PaymentNotFound(EntryError):
    status_code = 400

class PaymentIncomplete(EntryError):
    status_code = 402

    def __init__(self, status: str):
        super().__init__(f"Payment not completed (status={status})")
        self.status = status

    def detail(self):
        return {"error": "Payment not completed", "paymentStatus": self.status}


class CorruptPaymentMetadata(EntryError):
    status_code = 500

class Unauthorized(EntryError):
    status_code = 403

class NotFound(EntryError):
    status_code = 404

class AlreadySubmitted(EntryError):
    status_code = 409

class PersistenceError(EntryError):
    status_code = 500

class PaymentProviderError(EntryError):
    status_code = 502

class WebhookSignatureInvalid(EntryError):
    status_code = 400

class ServiceNotConfigured(EntryError):
    status_code = 503


def to_http(exc: EntryError) -> HTTPException:
    # Internal failures keep their message in the logs only
    if isinstance(exc, (CorruptPaymentMetadata, PersistenceError)):
        return HTTPException(status_code=exc.status_code, detail=exc.__class__.__name__)
    return HTTPException(status_code=exc.status_code, detail=exc.detail())
