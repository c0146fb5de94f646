"""
User agent classification for click analytics.
"""

from typing import NamedTuple, Optional

from user_agents import parse

UNKNOWN_OS = "Unknown"


class ClientInfo(NamedTuple):
    os_name: str
    device_type: str


def classify_user_agent(raw: Optional[str]) -> ClientInfo:
    """
    Derive OS family and device class from a raw user agent string.

    Device class is one of "mobile", "tablet", "bot" or "desktop"; anything
    the parser cannot place counts as desktop.
    """
    agent = parse(raw or "")

    os_name = agent.os.family
    if not os_name or os_name == "Other":
        os_name = UNKNOWN_OS

    if agent.is_tablet:
        device_type = "tablet"
    elif agent.is_mobile:
        device_type = "mobile"
    elif agent.is_bot:
        device_type = "bot"
    else:
        device_type = "desktop"

    return ClientInfo(os_name=os_name, device_type=device_type)
