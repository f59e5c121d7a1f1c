"""
Coarse location lookup for click events.

The resolver only needs a callable ``(ip) -> str`` that never raises.
``classify_address`` is the local default; anything slower (a GeoIP
service, a database) should be wrapped in ``TimedLocationLookup`` so a
slow lookup can't hold up click recording.
"""

import ipaddress
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Callable

from shortlink_app.logging_config import get_logger


logger = get_logger("location")

LocationLookup = Callable[[str], str]

LOCAL = "Local"
PRIVATE_NETWORK = "Private Network"
UNKNOWN_LOCATION = "Unknown Location"
LOCATION_UNAVAILABLE = "Unknown"


def classify_address(ip: str) -> str:
    """Classify a client address without leaving the process"""
    if ip == "localhost":
        return LOCAL

    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return LOCATION_UNAVAILABLE

    # ::ffff:127.0.0.1 and friends classify as their IPv4 address
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped:
        address = address.ipv4_mapped

    if address.is_loopback:
        return LOCAL
    if address.is_private:
        return PRIVATE_NETWORK
    return UNKNOWN_LOCATION


class TimedLocationLookup:
    """
    Run a location lookup with a deadline.

    On timeout or error the location degrades to "Unknown" and the
    redirect carries on.
    """

    def __init__(self, lookup: LocationLookup, timeout: float = 0.5, max_workers: int = 4):
        self.lookup = lookup
        self.timeout = timeout
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="location-lookup",
        )

    def __call__(self, ip: str) -> str:
        future = self._executor.submit(self.lookup, ip)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError:
            future.cancel()
            logger.warning("Location lookup for %s timed out after %ss", ip, self.timeout)
            return LOCATION_UNAVAILABLE
        except Exception as e:
            logger.warning("Location lookup for %s failed: %s", ip, e)
            return LOCATION_UNAVAILABLE

    def close(self) -> None:
        self._executor.shutdown(wait=False)
