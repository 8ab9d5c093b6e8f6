"""Enumeration types for property and ledger entities."""

from enum import Enum


class PropertyStatus(str, Enum):
    AVAILABLE = "Available"
    SOLD = "Sold"


class DueDate(str, Enum):
    FIFTEENTH = "15th"
    THIRTIETH = "30th"


class VatStatus(str, Enum):
    VATABLE = "Vatable"
    NON_VAT = "Non Vat"


class PaymentType(str, Enum):
    CASH = "cash"
    GCASH = "GCASH"
    SB_HRM = "SB-HRM"
    SB_LWS = "SB-LWS"
    SB_HHE = "SB-HHE"
    CBS_LWS = "CBS-LWS"
    CBS_HHE = "CBS-HHE"


class FieldKind(str, Enum):
    """Storage kind of a project table column."""

    TEXT = "TEXT"
    NUMERIC = "NUMERIC"
    DATE = "DATE"
