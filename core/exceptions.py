"""
Core — Domain Exceptions

Typed business-rule errors raised by the service layer. Each carries the
structured context a presentation layer needs to render an actionable
message (part code, available vs. required quantity, document ids) both as
attributes and in ``detail``.

@file core/exceptions.py
"""

from rest_framework import status
from rest_framework.exceptions import APIException


class BusinessRuleViolation(APIException):
    """Raised when a business rule is violated at the service layer."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Business rule violation.'
    default_code = 'BUSINESS_RULE_VIOLATION'


class InvalidStateTransition(BusinessRuleViolation):
    """Raised when a state machine transition is not allowed."""
    default_detail = 'Invalid state transition.'
    default_code = 'INVALID_STATE_TRANSITION'


class ForbiddenOperationError(APIException):
    """Raised when editing a document that is confirmed or cancelled."""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'This document can no longer be modified.'
    default_code = 'FORBIDDEN'

    def __init__(self, *, document_id=None, reason: str = ''):
        self.document_id = document_id
        self.reason = reason or str(self.default_detail)
        super().__init__(detail={
            'detail': self.reason,
            'document_id': str(document_id) if document_id else '',
        })


class InsufficientStockError(APIException):
    """Raised when a stock adjustment would drive a part below zero."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Insufficient stock for this operation.'
    default_code = 'INSUFFICIENT_STOCK'

    def __init__(self, *, part_code: str, available: int, required: int):
        self.part_code = part_code
        self.available = available
        self.required = required
        super().__init__(detail={
            'part_code': part_code,
            'available': available,
            'required': required,
        })


class PartMismatchError(BusinessRuleViolation):
    """Scanned part identifier does not match the requested part."""
    default_detail = 'Scanned part does not match the requested part.'
    default_code = 'PART_MISMATCH'

    def __init__(self, *, expected: str, scanned: str):
        self.expected = expected
        self.scanned = scanned
        super().__init__(detail={'expected': expected, 'scanned': scanned})


class QuantityExceededError(BusinessRuleViolation):
    default_detail = 'Supply quantity exceeds the requested quantity.'
    default_code = 'QUANTITY_EXCEEDED'

    def __init__(self, *, requested: int, supplied: int):
        self.requested = requested
        self.supplied = supplied
        super().__init__(detail={'requested': requested, 'supplied': supplied})


class DuplicateResourceError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists.'
    default_code = 'DUPLICATE_RESOURCE'

    def __init__(self, detail=None, code=None, *, number=None):
        self.number = number
        if detail is None and number is not None:
            detail = {'detail': str(self.default_detail), 'number': str(number)}
        super().__init__(detail=detail, code=code)


class ResourceNotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'RESOURCE_NOT_FOUND'
