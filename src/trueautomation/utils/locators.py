from typing import Tuple

from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.remote.webelement import WebElement

from ..core.session.errors import InvalidCharacterError

Locator = Tuple[str, str]

TA_MARKER = "__taonly__"


def escape_css(css: str) -> str:
    """
    Serializes a CSS identifier.

    See https://drafts.csswg.org/cssom/#serialize-an-identifier

    Raises:
        TypeError: The input is not a string.
        InvalidCharacterError: The input contains U+0000.
    """
    if not isinstance(css, str):
        raise TypeError('input must be a string')
    out = []
    n = len(css)
    for i, ch in enumerate(css):
        c = ord(ch)
        if c == 0:
            raise InvalidCharacterError("CSS identifiers cannot contain U+0000")

        if (0x01 <= c <= 0x1F or c == 0x7F
                or (i == 0 and 0x30 <= c <= 0x39)
                or (i == 1 and 0x30 <= c <= 0x39 and css[0] == '-')):
            out.append(f"\\{c:x} ")
            continue

        if i == 0 and ch == '-' and n == 1:
            out.append('\\' + ch)
            continue

        if c >= 0x80 or ch in '-_' or (ch.isascii() and ch.isalnum()):
            out.append(ch)
            continue

        out.append('\\' + ch)
    return ''.join(out)


def by_ta(ta_name: str) -> Locator:
    """Locator for an element registered with TrueAutomation under ``ta_name``."""
    return By.CSS_SELECTOR, f"{TA_MARKER}{ta_name}{TA_MARKER}"


def by_name(name: str) -> Locator:
    """Locator for elements whose ``name`` attribute equals ``name``."""
    return By.CSS_SELECTOR, f'*[name="{escape_css(name)}"]'


def set_inner_html(driver: WebDriver, element: WebElement, value: str) -> None:
    driver.execute_script(
        'return (function(el, val){ el.innerHTML = val; return;})(arguments[0], arguments[1])',
        element,
        value,
    )
