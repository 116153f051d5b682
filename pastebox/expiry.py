"""Paste expiration policy.

This module converts the ISO 8601 durations submitted with a paste (for
example "PT5M" or "P1Y") into absolute UTC expiry timestamps.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import isodate

# Configure logging
logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# Default duration is almost infinite (20 years)
DEFAULT_EXPIRY = "P20Y"

# Years and months have no fixed length; count them as 365 and 30 days
DAYS_PER_YEAR = 365
DAYS_PER_MONTH = 30

MAX_DURATION = timedelta(days=20 * DAYS_PER_YEAR)


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class ExpiryPolicy:
    """Resolves caller-supplied durations into absolute expiry times.

    Empty input means the default duration. Durations longer than
    MAX_DURATION are clamped to it so stored timestamps never overflow,
    negative durations are clamped to zero. Unparseable input is logged and
    replaced by the default instead of failing the save.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        default: str = DEFAULT_EXPIRY,
        max_duration: timedelta = MAX_DURATION,
    ):
        """Initialize the policy.

        Args:
            clock: Callable returning the current UTC time (default: utc_now)
            default: ISO 8601 duration used for empty or invalid input
            max_duration: Upper bound for any resolved duration
        """
        self.clock = clock or utc_now
        self.default = default
        self.max_duration = max_duration

    def duration(self, expiry: str) -> timedelta:
        """Parse an ISO 8601 duration string into a clamped timedelta.

        Args:
            expiry: Duration such as "PT5M", "P1W" or "P20Y"; may be empty

        Returns:
            Duration between zero and max_duration
        """
        expiry = expiry.strip()
        if not expiry:
            expiry = self.default

        try:
            parsed = isodate.parse_duration(expiry)
        except OverflowError:
            # Valid ISO 8601 but too large for a timedelta
            logger.warning(f"Expiry {expiry!r} out of range, clamping")
            return timedelta(0) if expiry.startswith("-") else self.max_duration
        except (isodate.ISO8601Error, ValueError) as e:
            logger.warning(f"Invalid expiry {expiry!r}, using {self.default}: {e}")
            parsed = isodate.parse_duration(self.default)

        try:
            dura = self._to_timedelta(parsed)
        except OverflowError:
            return self.max_duration

        # Make sure we don't overflow duration at some point
        if dura > self.max_duration:
            return self.max_duration
        if dura < timedelta(0):
            return timedelta(0)
        return dura

    def resolve(self, expiry: str) -> datetime:
        """Compute the absolute expiry time for a paste saved now.

        Args:
            expiry: ISO 8601 duration string, may be empty

        Returns:
            Timezone-aware UTC datetime, truncated to whole seconds
        """
        now = self.clock().astimezone(timezone.utc).replace(microsecond=0)
        return now + self.duration(expiry)

    @staticmethod
    def _to_timedelta(parsed) -> timedelta:
        if isinstance(parsed, timedelta):
            return parsed

        # isodate.Duration carries calendar years and months separately
        days = float(parsed.years) * DAYS_PER_YEAR + float(parsed.months) * DAYS_PER_MONTH
        return timedelta(days=days) + parsed.tdelta
