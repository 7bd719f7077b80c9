"""
Typed Exception Hierarchy for the Backoffice Engine.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (controllers, job runners, the transaction collaborator) must react
to failures by category, not by parsing message strings:

  - ValidationError -> reject the request, show the field problem
  - NotFoundError   -> 404-style response
  - ConflictError   -> the document is in the wrong state; do not retry
                       without changing intent
  - InternalError   -> opaque failure; the transaction was rolled back

Every exception carries:
  1. A CODE class attribute (machine-readable, API-safe)
  2. Structured attributes (document_id, status, amounts...) instead of
     data buried in the message

Example:
    try:
        service.settle(document_id, payment)
    except PartialSettlementError as e:
        api_response(code=e.code, expected=e.expected_cents, paid=e.paid_cents)
    except ConflictError as e:
        api_response(code=e.code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BackofficeError (base)
    |
    +-- ValidationError
    |   +-- CounterpartyNotFoundError
    |   +-- EmptyPaymentTermError
    |   +-- InvalidAmountError
    |
    +-- NotFoundError
    |   +-- DocumentNotFoundError
    |
    +-- ConflictError
    |   +-- InvalidTransitionError
    |   +-- PartialSettlementError
    |   +-- DerivedDocumentError
    |   +-- ConcurrentModificationError
    |
    +-- InternalError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                        | When Raised
------------|-----------------------------|------------------------------------
Validation  | VALIDATION_ERROR            | Malformed or missing input
            | COUNTERPARTY_NOT_FOUND      | Supplier/customer id unknown
            | EMPTY_PAYMENT_TERM          | Payment term has no installments
            | INVALID_AMOUNT              | Negative / non-positive money field
------------|-----------------------------|------------------------------------
Not found   | NOT_FOUND                   | Generic missing entity
            | DOCUMENT_NOT_FOUND          | Document id unknown or removed
------------|-----------------------------|------------------------------------
Conflict    | CONFLICT                    | Generic state conflict
            | INVALID_TRANSITION          | Action not allowed from status
            | PARTIAL_SETTLEMENT          | Paid amount differs from total
            | DERIVED_DOCUMENT            | Direct cancel of derived document
            | CONCURRENT_MODIFICATION     | Row changed by another transaction
------------|-----------------------------|------------------------------------
Internal    | INTERNAL_ERROR              | Persistence / unexpected failure
"""


class BackofficeError(Exception):
    """
    Base exception for all backoffice engine errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "BACKOFFICE_ERROR"


# Validation


class ValidationError(BackofficeError):
    """Malformed or missing required input."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class CounterpartyNotFoundError(ValidationError):
    """Referenced supplier/customer does not exist."""

    code: str = "COUNTERPARTY_NOT_FOUND"

    def __init__(self, role: str, counterparty_id: str):
        self.role = role
        self.counterparty_id = counterparty_id
        super().__init__(
            f"Counterparty not found for {role}: {counterparty_id}",
            field="counterparty_id",
        )


class EmptyPaymentTermError(ValidationError):
    """Payment-term template carries no installments."""

    code: str = "EMPTY_PAYMENT_TERM"

    def __init__(self):
        super().__init__(
            "Payment term has no installments; cannot build a schedule",
            field="template",
        )


class InvalidAmountError(ValidationError):
    """A monetary field is outside its allowed range."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, amount_cents: int, reason: str):
        self.amount_cents = amount_cents
        self.reason = reason
        super().__init__(f"Invalid {field} ({amount_cents}): {reason}", field=field)


# Not found


class NotFoundError(BackofficeError):
    """Referenced entity does not exist."""

    code: str = "NOT_FOUND"


class DocumentNotFoundError(NotFoundError):
    """Document id does not exist or has been removed."""

    code: str = "DOCUMENT_NOT_FOUND"

    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__(f"Monetary document not found: {document_id}")


# Conflict


class ConflictError(BackofficeError):
    """Operation incompatible with the document's current state."""

    code: str = "CONFLICT"


class InvalidTransitionError(ConflictError):
    """Lifecycle action not allowed from the current status."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, document_id: str, status: str, action: str):
        self.document_id = document_id
        self.status = status
        self.action = action
        super().__init__(
            f"Cannot {action} document {document_id} in status {status}"
        )


class PartialSettlementError(ConflictError):
    """Paid amount does not match the document total."""

    code: str = "PARTIAL_SETTLEMENT"

    def __init__(self, document_id: str, expected_cents: int, paid_cents: int):
        self.document_id = document_id
        self.expected_cents = expected_cents
        self.paid_cents = paid_cents
        super().__init__(
            f"Paid amount {paid_cents} must equal document total "
            f"{expected_cents} for {document_id}; partial settlement is not allowed"
        )


class DerivedDocumentError(ConflictError):
    """Derived documents are cancelled only through their transaction."""

    code: str = "DERIVED_DOCUMENT"

    def __init__(self, document_id: str, transaction_id: str):
        self.document_id = document_id
        self.transaction_id = transaction_id
        super().__init__(
            f"Document {document_id} was generated by transaction "
            f"{transaction_id}; cancel the transaction instead"
        )


class ConcurrentModificationError(ConflictError):
    """Guarded update matched no row: another transaction won the race."""

    code: str = "CONCURRENT_MODIFICATION"

    def __init__(self, document_id: str, action: str):
        self.document_id = document_id
        self.action = action
        super().__init__(
            f"Document {document_id} was modified by another transaction "
            f"during {action}"
        )


# Internal


class InternalError(BackofficeError):
    """Persistence or unexpected failure; the transaction was rolled back."""

    code: str = "INTERNAL_ERROR"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Internal failure during {operation}")
