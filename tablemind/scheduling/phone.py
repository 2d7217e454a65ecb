"""Customer phone matching and the debounced type-ahead lookup"""

import asyncio
import re
from typing import Any, Awaitable, Callable, Generic, Iterable, Optional, TypeVar

from tablemind.config import settings

T = TypeVar("T")

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(phone: Optional[str]) -> str:
    """Strip everything but digits: '(555) 010-1' -> '5550101'"""
    return _NON_DIGITS.sub("", phone or "")


def phone_matches(query_digits: str, candidate_digits: str) -> bool:
    """Equal, or one contained in the other (partial entry while typing)"""
    if not query_digits or not candidate_digits:
        return False
    return (
        query_digits == candidate_digits
        or query_digits in candidate_digits
        or candidate_digits in query_digits
    )


def best_match(query: str, customers: Iterable[Any], min_digits: int = 3) -> Optional[Any]:
    """Pick the customer whose phone matches ``query``.

    An exact digit match wins; otherwise the first partial match in the
    order given. Queries shorter than ``min_digits`` never match.
    """
    digits = normalize_phone(query)
    if len(digits) < min_digits:
        return None

    first_partial = None
    for customer in customers:
        candidate = normalize_phone(customer.phone)
        if candidate == digits:
            return customer
        if first_partial is None and phone_matches(digits, candidate):
            first_partial = customer
    return first_partial


def mask_phone(phone: Optional[str]) -> Optional[str]:
    """Last four digits only, for logs"""
    if not phone:
        return None
    return normalize_phone(phone)[-4:]


class PhoneLookupDebouncer(Generic[T]):
    """Run a phone lookup only after the user stops typing.

    Each ``submit`` supersedes the previous one: a pending lookup that has
    not fired yet, or is still in flight, is cancelled and its caller gets
    ``None``.
    """

    def __init__(
        self,
        lookup: Callable[[str], Awaitable[Optional[T]]],
        delay_ms: int = settings.phone_lookup_debounce_ms,
        min_digits: int = settings.phone_lookup_min_digits,
    ):
        self.lookup = lookup
        self.delay = delay_ms / 1000
        self.min_digits = min_digits
        self._pending: Optional[asyncio.Future] = None

    async def _debounced(self, query: str) -> Optional[T]:
        await asyncio.sleep(self.delay)
        return await self.lookup(query)

    async def submit(self, query: str) -> Optional[T]:
        self.cancel()
        if len(normalize_phone(query)) < self.min_digits:
            return None

        task = asyncio.ensure_future(self._debounced(query))
        self._pending = task
        try:
            return await task
        except asyncio.CancelledError:
            if self._pending is task:
                raise
            return None

    def cancel(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
