"""
Chrome-backed page session.

Wraps a Selenium WebDriver so the rest of the package only sees the
`PageSession` / `PageNode` shape from :mod:`flight_prices.page`. Selenium
exceptions are translated into the package's page errors:

- ``NoSuchElementException`` -> `NodeNotFound`
- ``StaleElementReferenceException`` -> `StalePage`
- any other ``WebDriverException`` -> `SessionFault`
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Union

from selenium import webdriver
from selenium.common.exceptions import (
    NoSuchElementException,
    StaleElementReferenceException,
    WebDriverException,
)
from selenium.webdriver import ChromeOptions
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webelement import WebElement

from .errors import NodeNotFound, SessionFault, StalePage
from .page import normalize_text


def configure_driver(headless: bool) -> webdriver.Chrome:
    options = ChromeOptions()
    if headless:
        options.add_argument("--headless=new")
    options.add_argument("--ignore-certificate-errors")
    options.add_argument("--ignore-ssl-errors")
    options.add_argument("--ignore-certificate-errors-spki-list")
    options.add_argument("--disable-dev-shm-usage")
    options.add_argument("--window-size=1600,1200")
    options.add_experimental_option("prefs", {"intl.accept_languages": "en-US,en"})
    driver = webdriver.Chrome(options=options)
    driver.set_page_load_timeout(60)
    return driver


@contextmanager
def translate_errors(xpath: str) -> Iterator[None]:
    # NoSuchElement and StaleElementReference both subclass WebDriverException.
    try:
        yield
    except NoSuchElementException as exc:
        raise NodeNotFound(f"No element matches {xpath!r}") from exc
    except StaleElementReferenceException as exc:
        raise StalePage(f"Stale element while evaluating {xpath!r}") from exc
    except WebDriverException as exc:
        raise SessionFault(exc.msg or type(exc).__name__) from exc


class BrowserNode:
    def __init__(self, element: WebElement) -> None:
        self._element = element

    @property
    def text(self) -> str:
        with translate_errors("text()"):
            return normalize_text(self._element.text)

    def find(self, xpath: str) -> "BrowserNode":
        with translate_errors(xpath):
            return BrowserNode(self._element.find_element(By.XPATH, xpath))

    def find_all(self, xpath: str) -> List["BrowserNode"]:
        with translate_errors(xpath):
            return [BrowserNode(element) for element in self._element.find_elements(By.XPATH, xpath)]


class BrowserPage:
    def __init__(self, driver: Optional[webdriver.Chrome] = None, headless: bool = False) -> None:
        self.driver = driver if driver is not None else configure_driver(headless=headless)

    def navigate(self, url: str) -> None:
        with translate_errors(url):
            self.driver.get(url)

    def find(self, xpath: str) -> BrowserNode:
        with translate_errors(xpath):
            return BrowserNode(self.driver.find_element(By.XPATH, xpath))

    def find_all(self, xpath: str) -> List[BrowserNode]:
        with translate_errors(xpath):
            return [BrowserNode(element) for element in self.driver.find_elements(By.XPATH, xpath)]

    def page_source(self) -> str:
        with translate_errors("page_source"):
            return self.driver.page_source

    def save_snapshot(self, path: Union[str, Path]) -> Path:
        """Write the current page source so a failed date can be re-extracted offline."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.page_source(), encoding="utf-8")
        return target

    def close(self) -> None:
        try:
            self.driver.quit()
        except WebDriverException as exc:
            print(f"[WARN] Closing the browser failed ({exc.msg or type(exc).__name__}).")
