"""
Enum Utilities for String-valued Modes and Statuses

CONVENTION:
━━━━━━━━━━━
• Wire/JSON: plain strings, UPPERCASE (e.g. "APPROVE_LEVEL_1", "EXCLUSIVE")
• Pydantic: Python str-Enum for validation
• Services: compare against the Enum, never against raw strings

CASE NORMALIZATION:
━━━━━━━━━━━━━━━━━━━
Clients send mixed case ("approveLevel1", "exclusive"). Use
normalize_to_uppercase() in a field_validator(mode="before") so the
Enum accepts them.

USAGE PATTERNS:
━━━━━━━━━━━━━━━
1. In Pydantic Schemas (with case normalization):
   @field_validator('mode', mode='before')
   @classmethod
   def normalize_mode(cls, v):
       return normalize_to_uppercase(v, VALID_FORM_MODES)

2. In API Responses:
   return {"mode": get_enum_value(data.mode)}  # Safe for both
"""

import re
from enum import Enum
from typing import Any, Optional, Set

_CAMEL_BOUNDARY = re.compile(r'(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Za-z])(?=[0-9])')


def get_enum_value(value: Any) -> Optional[str]:
    """
    Safely get string value from an enum or string.

    Examples:
        >>> get_enum_value(FormMode.EDIT)
        'EDIT'
        >>> get_enum_value("EDIT")
        'EDIT'
        >>> get_enum_value(None)
        None
    """
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    return str(value)


# =============================================================================
# CASE NORMALIZATION FOR PYDANTIC SCHEMAS
# =============================================================================

def normalize_to_uppercase(value: Any, valid_values: Set[str]) -> Any:
    """
    Normalize a string value to UPPERCASE if it's a valid enum value.

    camelCase input is split on word boundaries first, so
    "approveLevel1" becomes "APPROVE_LEVEL_1".

    Examples:
        >>> normalize_to_uppercase('exclusive', {'EXCLUSIVE'})
        'EXCLUSIVE'
        >>> normalize_to_uppercase('approveLevel2', {'APPROVE_LEVEL_2'})
        'APPROVE_LEVEL_2'
        >>> normalize_to_uppercase('invalid', {'EXCLUSIVE'})
        'invalid'  # Returned as-is for Pydantic to raise validation error
    """
    if value is None or isinstance(value, Enum):
        return value
    if isinstance(value, str):
        upper_v = value.strip().upper()
        if upper_v in valid_values:
            return upper_v
        snake_v = _CAMEL_BOUNDARY.sub('_', value.strip()).upper()
        if snake_v in valid_values:
            return snake_v
    return value


# =============================================================================
# PRE-DEFINED VALID VALUE SETS
# =============================================================================

VALID_FORM_MODES = {"CREATE", "EDIT", "APPROVE_LEVEL_1", "APPROVE_LEVEL_2"}

VALID_ORDER_KINDS = {"PURCHASE_ORDER", "WORK_ORDER"}

VALID_CHARGE_STATUSES = {"EXCLUSIVE", "INCLUSIVE", "NOT_APPLICABLE", "MANUAL"}

VALID_APPROVAL_STATUSES = {
    "DRAFT", "APPROVED_LEVEL_1", "APPROVED_LEVEL_2", "COMPLETED", "SUSPENDED"
}
