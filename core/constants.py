"""
Core — Constants

Shared literals used across apps.

@file core/constants.py
"""

AUDIT_ACTION_CREATE = 'CREATE'
AUDIT_ACTION_UPDATE = 'UPDATE'
AUDIT_ACTION_DELETE = 'DELETE'
AUDIT_ACTION_STATUS_CHANGE = 'STATUS_CHANGE'

# Part.stock_status boundary when settings.LOW_STOCK_THRESHOLD is unset
DEFAULT_LOW_STOCK_THRESHOLD = 10

# Outgoing document numbers: OUT-<DDMMYY>-<SEQ>
OUTGOING_NUMBER_PREFIX = 'OUT'
OUTGOING_NUMBER_DATE_FORMAT = '%d%m%y'
OUTGOING_SEQUENCE_WIDTH = 3

REQUEST_SEQUENCE_NAME = 'REQUEST'
