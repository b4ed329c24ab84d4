"""Helpers for reading Stripe objects that may arrive as StripeObject, dict or id string"""
import json
from typing import Any, Dict, Optional


def get_stripe_value(obj: Any, key: str, default=None):
    """Safely extract value from Stripe object (supports both dict and attribute access)."""
    if obj is None:
        return default
    # StripeObject is a dict subclass, so this covers webhook payloads too
    if isinstance(obj, dict):
        value = obj.get(key, default)
        return default if value is None else value
    value = getattr(obj, key, None)
    return default if value is None else value


def extract_id(value: Any) -> Optional[str]:
    """Resolve a correlated Stripe reference to its id.

    Stripe sends references either collapsed ("cus_123") or expanded
    ({"id": "cus_123", ...}). Anything else, including empty strings, is None.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    ref_id = get_stripe_value(value, "id")
    if isinstance(ref_id, str) and ref_id:
        return ref_id
    return None


def to_plain_dict(obj: Any) -> Dict[str, Any]:
    """Convert a (possibly nested) StripeObject into plain JSON-compatible data."""
    if obj is None:
        return {}
    return json.loads(json.dumps(obj, default=str))
