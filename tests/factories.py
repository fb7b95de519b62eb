"""
Sample builders and identifiers shared by the test modules.
"""

from pumpwatch.models import Sample

DEVICE_ID = "D1"
OTHER_DEVICE_ID = "D2"
TZ = "Asia/Kolkata"


def make_sample(
    clock: str,
    value: float = 2.0,
    day: str = "2025-04-11",
    tz: str = TZ,
) -> Sample:
    """Build a sample at ``day clock`` in ``tz``."""
    return Sample(timestamp=f"{day} {clock}", timezone=tz, value=value)
