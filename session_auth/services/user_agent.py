from typing import Optional

from session_auth.config import settings
from session_auth.schemas.sessions import DeviceLabels

UNKNOWN_DEVICE = "Unknown device"
UNKNOWN_BROWSER = "Unknown browser"
MOBILE_DEVICE = "Mobile device"
DESKTOP_DEVICE = "Desktop device"

# Checked in order; the first token found in the lower-cased agent wins.
_DEVICE_TOKENS = (
    ("iphone", "iPhone"),
    ("ipad", "iPad"),
    ("android", "Android"),
    ("mobile", MOBILE_DEVICE),
    ("mac os", "macOS"),
    ("windows", "Windows"),
    ("linux", "Linux"),
)


def classify_user_agent(
    raw_agent: Optional[str], browser_length: Optional[int] = None
) -> DeviceLabels:
    if not raw_agent or not raw_agent.strip():
        return DeviceLabels(device=UNKNOWN_DEVICE, browser=UNKNOWN_BROWSER)
    lowered = raw_agent.lower()
    device = DESKTOP_DEVICE
    for token, label in _DEVICE_TOKENS:
        if token in lowered:
            device = label
            break
    limit = browser_length or settings.browser_label_length
    return DeviceLabels(device=device, browser=raw_agent[:limit])
