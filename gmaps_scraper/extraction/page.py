"""
Place Page Extraction

Browser side of detail extraction: waits for the place panel, expands the
opening hours, then reads every candidate value in one script evaluation.
Turning that snapshot into a record is done by parsers/place.py.
"""

import asyncio

from playwright.async_api import Error as PlaywrightError

from ..config import HOURS_EXPAND_DELAY, MAIN_WAIT_TIMEOUT_MS, SELECTORS
from ..config_manager import ScraperConfig
from ..exceptions import PageUnavailableError
from ..models import BusinessRecord
from ..parsers.place import build_business_record

SNAPSHOT_SCRIPT = """
(sel) => {
    const text = (el) => el ? (el.textContent || '').trim() : '';
    const first = (selector) => document.querySelector(selector);
    const all = (selector) => Array.from(document.querySelectorAll(selector));
    const labels = (selector) => all(selector)
        .map(el => el.getAttribute('aria-label') || '')
        .filter(Boolean);
    const hrefs = (selector) => all(selector).map(a => a.href || '').filter(Boolean);
    const control = (selector) => {
        const el = first(selector);
        return el ? {label: el.getAttribute('aria-label') || '', text: text(el)} : null;
    };
    const meta = (selector) => {
        const el = first(selector);
        return el ? el.getAttribute('content') : null;
    };

    const authority = first(sel.website);
    const reviewsButton = first('button[jsaction*="reviews"]');
    const hoursSection = first('div[aria-label*="Hours"] table, table.eK4R0e, div.t39EBf');
    const hoursButton = first(sel.hours_button);
    const about = first('div[aria-label*="About"]');
    const knownFor = all('[aria-label]')
        .map(el => el.getAttribute('aria-label'))
        .find(label => label.includes('Known for') || label.includes('Local institution'));

    return {
        url: window.location.href,
        body_text: document.body ? document.body.innerText : '',
        h1_primary: text(first(sel.name)),
        h1_any: text(first('h1')),
        category_text: text(first(sel.category)),
        button_texts: all('button').map(b => text(b)).filter(Boolean),
        star_labels: labels('[role="img"][aria-label*="star"], span[aria-label*="star"]'),
        rating_text: text(first(sel.rating_secondary)),
        review_labels: labels('[aria-label*="review"]'),
        reviews_button_label: reviewsButton ? (reviewsButton.getAttribute('aria-label') || '') : '',
        priced_labels: labels('[aria-label*="priced"]'),
        address_labels: labels('button[aria-label^="Address"]'),
        address_button: control(sel.address),
        phone_labels: labels('button[aria-label^="Phone"]'),
        phone_button: control(sel.phone),
        website_links: hrefs('a[aria-label*="Website"]'),
        authority_link: authority ? (authority.href || '') : '',
        plus_code_labels: labels('button[aria-label^="Plus code"]'),
        copy_hours_labels: labels('button[aria-label*="Copy open hours"]'),
        hours_section_text: hoursSection ? hoursSection.innerText : '',
        hours_label: hoursButton ? (hoursButton.getAttribute('aria-label') || '') : '',
        image_sources: all('img').map(img => img.src || '').filter(Boolean),
        about_text: about ? about.innerText.trim() : '',
        known_for_label: knownFor || '',
        group_labels: labels('[role="group"][aria-label]'),
        whatsapp_hrefs: hrefs('a[href*="wa.me"], a[href*="whatsapp"]'),
        mailto_hrefs: hrefs('a[href^="mailto:"]'),
        meta_latitude: meta(sel.meta_latitude),
        meta_longitude: meta(sel.meta_longitude),
    };
}
"""


PAGE_GONE_MARKERS = ("closed", "context was destroyed", "frame was detached")


def _is_closed_error(error: Exception) -> bool:
    """True when the page was closed or navigated away under us."""
    message = str(error).lower()
    return any(marker in message for marker in PAGE_GONE_MARKERS)


async def _expand_hours(page):
    """Open the weekly hours table if it is collapsed. Best effort."""
    try:
        button = await page.query_selector(SELECTORS["hours_button"])
        if button is None:
            return
        if await button.get_attribute("aria-expanded") == "false":
            await button.click()
            await asyncio.sleep(HOURS_EXPAND_DELAY)
    except Exception:
        pass


async def take_snapshot(page, config: ScraperConfig = None) -> dict:
    """
    Read all raw candidate values from a rendered place page.

    Raises:
        PageUnavailableError: If the page is (or becomes) closed
    """
    config = config or ScraperConfig()

    if page.is_closed():
        raise PageUnavailableError("Page was closed before extraction")

    try:
        await page.wait_for_selector(SELECTORS["main"], timeout=MAIN_WAIT_TIMEOUT_MS)
    except PlaywrightError as e:
        if _is_closed_error(e):
            raise PageUnavailableError(str(e)) from e
        # Panel may still be usable without the main role

    await asyncio.sleep(config.detail_settle_delay)
    await _expand_hours(page)

    if page.is_closed():
        raise PageUnavailableError("Page was closed during extraction")

    try:
        snapshot = await page.evaluate(SNAPSHOT_SCRIPT, SELECTORS)
    except PlaywrightError as e:
        if _is_closed_error(e):
            raise PageUnavailableError(str(e)) from e
        raise

    return snapshot or {}


async def extract_business(page, config: ScraperConfig = None) -> BusinessRecord:
    """
    Extract a BusinessRecord from a rendered place page.

    Missing fields stay empty; only a closed page raises.

    Args:
        page: Browser page already navigated to a place URL
        config: Delays for the settle pause

    Returns:
        BusinessRecord stamped with the extraction time

    Raises:
        PageUnavailableError: If the page is closed before or while extracting
    """
    snapshot = await take_snapshot(page, config)
    if not snapshot.get("url"):
        snapshot["url"] = page.url
    return build_business_record(snapshot)
