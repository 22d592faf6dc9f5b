"""Client Context Classifier — device class, browser family and OS from a user-agent.

Invariants:
    - classify() is total: every string (including "") yields a ClientContext
    - Rules are evaluated top-to-bottom, first match wins
    - Edge wins over the Chrome token it contains; Chrome wins over the Safari token it contains
    - Android wins over Linux; iPhone/iPad win over "Mac OS"
    - Device patterns are case-insensitive; browser/OS tokens are case-sensitive

Design Decisions:
    - Ordered (predicate, result) tables: precedence lives in rule order, not in
      incidental string-search luck
    - Frozen dataclass result: value semantics, safe to cache per session
"""

import re
from dataclasses import dataclass
from typing import Callable, TypeVar

from sitetrack.core.domain_types import Browser, DeviceType, OperatingSystem

T = TypeVar("T")
Rule = tuple[Callable[[str], bool], T]

_MOBILE_OR_TABLET = re.compile(
    r"mobile|android|iphone|ipad|ipod|blackberry|windows phone", re.IGNORECASE,
)
_TABLET = re.compile(r"ipad|tablet", re.IGNORECASE)


@dataclass(frozen=True)
class ClientContext:
    device_type: DeviceType
    browser: Browser
    os: OperatingSystem

    def to_dict(self) -> dict[str, str]:
        return {
            "device_type": self.device_type.value,
            "browser": self.browser.value,
            "os": self.os.value,
        }


def _contains(*tokens: str) -> Callable[[str], bool]:
    return lambda ua: any(token in ua for token in tokens)


def _contains_without(token: str, excluded: str) -> Callable[[str], bool]:
    return lambda ua: token in ua and excluded not in ua


_IOS_DEVICE = _contains("iPhone", "iPad")

DEVICE_RULES: list[Rule[DeviceType]] = [
    (lambda ua: bool(_MOBILE_OR_TABLET.search(ua) and _TABLET.search(ua)), DeviceType.TABLET),
    (lambda ua: bool(_MOBILE_OR_TABLET.search(ua)), DeviceType.MOBILE),
]

BROWSER_RULES: list[Rule[Browser]] = [
    (_contains_without("Chrome", "Edg"), Browser.CHROME),
    (_contains_without("Safari", "Chrome"), Browser.SAFARI),
    (_contains("Firefox"), Browser.FIREFOX),
    (_contains("Edg"), Browser.EDGE),
    (_contains("Opera", "OPR"), Browser.OPERA),
]

# Android UAs carry "Linux" and iOS UAs carry "like Mac OS X"; the mobile OS wins.
OS_RULES: list[Rule[OperatingSystem]] = [
    (_contains("Windows"), OperatingSystem.WINDOWS),
    (lambda ua: "Mac OS" in ua and not _IOS_DEVICE(ua), OperatingSystem.MACOS),
    (_contains_without("Linux", "Android"), OperatingSystem.LINUX),
    (_contains("Android"), OperatingSystem.ANDROID),
    (lambda ua: "iOS" in ua or _IOS_DEVICE(ua), OperatingSystem.IOS),
]


def first_match(rules: list[Rule[T]], user_agent: str, fallback: T) -> T:
    for predicate, result in rules:
        if predicate(user_agent):
            return result
    return fallback


def classify_device(user_agent: str) -> DeviceType:
    return first_match(DEVICE_RULES, user_agent, DeviceType.DESKTOP)


def classify_browser(user_agent: str) -> Browser:
    return first_match(BROWSER_RULES, user_agent, Browser.OTHER)


def classify_os(user_agent: str) -> OperatingSystem:
    return first_match(OS_RULES, user_agent, OperatingSystem.OTHER)


def classify(user_agent: str | None) -> ClientContext:
    """Classify a raw user-agent string. Never raises."""
    ua = user_agent or ""
    return ClientContext(
        device_type=classify_device(ua),
        browser=classify_browser(ua),
        os=classify_os(ua),
    )
