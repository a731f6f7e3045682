"""Device fingerprint and public network address probing."""

import ipaddress
import logging
import platform as platform_module
from dataclasses import dataclass
from typing import Protocol

from geo_tracker.domain.telemetry import UNKNOWN_IP, DeviceInfo

logger = logging.getLogger(__name__)

# Order matters: Edge and Opera also advertise Chrome and Safari tokens.
_BROWSER_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("Edg/", "Edge/"), "Edge"),
    (("OPR/", "Opera"), "Opera"),
    (("Firefox/", "FxiOS/"), "Firefox"),
    (("Chrome/", "CriOS/"), "Chrome"),
    (("Safari/",), "Safari"),
    (("Python/", "python-httpx/"), "Python"),
)

# iOS and Android user agents also contain "Mac OS X" and "Linux".
_OS_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("Windows",), "Windows"),
    (("Android",), "Android"),
    (("iPhone", "iPad", "iPod"), "iOS"),
    (("Mac OS X", "Macintosh", "Darwin"), "macOS"),
    (("CrOS",), "ChromeOS"),
    (("Linux",), "Linux"),
)


class IpLookupClient(Protocol):
    """Interface for a public IP echo service."""

    async def lookup(self) -> dict[str, object]:
        """Return the raw JSON body of the echo service."""


def parse_browser(user_agent: str) -> str:
    """Return a browser label for a user-agent string."""
    return _match(user_agent, _BROWSER_RULES)


def parse_os(user_agent: str) -> str:
    """Return an operating system label for a user-agent string."""
    return _match(user_agent, _OS_RULES)


def default_user_agent(version: str = "0.1.0") -> str:
    """Build a user-agent string describing the current interpreter host."""
    return (
        f"geo-tracker/{version} "
        f"({platform_module.system()} {platform_module.release()}; "
        f"{platform_module.machine()}) "
        f"Python/{platform_module.python_version()}"
    )


def default_platform() -> str:
    """Return the host platform label."""
    label = f"{platform_module.system()} {platform_module.machine()}".strip()
    return label or "Unknown"


@dataclass
class EnvironmentProbe:
    """Read device metadata and resolve the public IP address."""

    ip_client: IpLookupClient
    user_agent: str
    platform: str
    screen: str = "Unknown"

    def device_info(self) -> DeviceInfo:
        """Return the device fingerprint for the configured environment."""
        return DeviceInfo(
            browser=parse_browser(self.user_agent),
            os=parse_os(self.user_agent),
            platform=self.platform,
            screen=self.screen,
            user_agent=self.user_agent,
        )

    async def public_ip(self) -> str:
        """Return the public IP address, or the sentinel on any failure."""
        try:
            payload = await self.ip_client.lookup()
        except Exception:  # noqa: BLE001
            logger.warning("IP lookup failed", exc_info=True)
            return UNKNOWN_IP
        value = payload.get("ip") if isinstance(payload, dict) else None
        if not isinstance(value, str):
            logger.warning("IP lookup returned no address")
            return UNKNOWN_IP
        try:
            return str(ipaddress.ip_address(value.strip()))
        except ValueError:
            logger.warning("IP lookup returned an invalid address: %r", value)
            return UNKNOWN_IP


def _match(user_agent: str, rules: tuple[tuple[tuple[str, ...], str], ...]) -> str:
    for tokens, label in rules:
        if any(token in user_agent for token in tokens):
            return label
    return "Unknown"
