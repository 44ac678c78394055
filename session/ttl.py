"""
Expiry policy for stored sessions.

The TTL applied to a session key is, in order of preference:
1. the store's fixed ttl override,
2. the session cookie's maxAge (milliseconds) floored to whole seconds,
3. one day.
"""

import math
from collections.abc import Mapping
from numbers import Integral, Real
from typing import Any, Optional

ONE_DAY = 86400


def _lookup(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def get_cookie_max_age(record: Any) -> Optional[Real]:
    """Return the record's cookie maxAge if it is a number, else None."""
    cookie = _lookup(record, "cookie")
    if cookie is None:
        return None
    max_age = _lookup(cookie, "maxAge")
    # bool is an int subclass but never a lifetime
    if isinstance(max_age, bool) or not isinstance(max_age, Real):
        return None
    # ints of any size are exact; only floats can be nan or infinite
    if not isinstance(max_age, Integral) and (math.isnan(max_age) or math.isinf(max_age)):
        return None
    return max_age


def get_ttl(record: Any, ttl_override: Optional[int] = None) -> int:
    """
    Compute the TTL in seconds for a session record.

    Args:
        record: Session record carrying an optional ``cookie.maxAge``.
        ttl_override: Fixed TTL configured on the store, if any.

    Returns:
        A non-negative integer number of seconds. Zero means the cookie has
        already expired.
    """
    if ttl_override:
        return int(ttl_override)

    max_age = get_cookie_max_age(record)
    if max_age is None:
        return ONE_DAY
    if isinstance(max_age, Integral):
        return max(0, int(max_age) // 1000)
    return max(0, math.floor(max_age / 1000))
