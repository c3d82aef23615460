"""Turn a loaded page's DOM into plain text.

The browser only answers narrow questions (text of the first match per
selector, body text); choosing which text to keep happens here.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, Sequence

logger = logging.getLogger(__name__)

# Elements that never carry article text
NOISE_SELECTORS: tuple[str, ...] = (
    "script",
    "style",
    "nav",
    "header",
    "footer",
    ".navigation",
    ".menu",
    ".sidebar",
    ".ads",
)

# Probed in order when a target has no explicit selectors
CONTENT_SELECTORS: tuple[str, ...] = (
    "main",
    "[role='main']",
    ".main-content",
    ".content",
    "#content",
    ".page-content",
    ".article",
    "article",
)

# Candidates at or below this many characters are treated as empty shells
MIN_CONTENT_LENGTH = 100

QUERY_TEXTS_JS = """
(selectors) => selectors.map((selector) => {
  const element = document.querySelector(selector);
  return element ? element.textContent || "" : null;
})
"""

REMOVE_ELEMENTS_JS = """
(selectors) => {
  for (const selector of selectors) {
    document.querySelectorAll(selector).forEach((el) => el.remove());
  }
}
"""

BODY_TEXT_JS = "() => (document.body ? document.body.textContent || '' : '')"


class EvaluatingPage(Protocol):
    """The part of a Playwright page extraction relies on."""

    async def evaluate(self, expression: str, arg: Any = None) -> Any: ...


async def extract_by_selectors(page: EvaluatingPage, selectors: Sequence[str]) -> str:
    """Join the text of each selector's first match, in order.

    A selector with no match contributes an empty line.
    """
    texts = await page.evaluate(QUERY_TEXTS_JS, list(selectors))
    return "\n".join(text or "" for text in texts)


async def extract_main_content(
    page: EvaluatingPage,
    candidates: Sequence[str] = CONTENT_SELECTORS,
    min_length: int = MIN_CONTENT_LENGTH,
) -> str:
    """Strip page chrome, then return the first substantial content block.

    Falls back to the whole body text when no candidate is long enough.
    """
    await page.evaluate(REMOVE_ELEMENTS_JS, list(NOISE_SELECTORS))

    texts = await page.evaluate(QUERY_TEXTS_JS, list(candidates))
    for selector, text in zip(candidates, texts):
        if text is None:
            continue
        stripped = text.strip()
        if len(stripped) > min_length:
            logger.debug("content candidate accepted", extra={"selector": selector, "length": len(stripped)})
            return stripped

    logger.debug("no content candidate matched, using body text")
    return await page.evaluate(BODY_TEXT_JS)


async def extract_content(page: EvaluatingPage, selectors: Sequence[str] = ()) -> str:
    """Extract text using explicit selectors when given, heuristics otherwise."""
    if selectors:
        return await extract_by_selectors(page, selectors)
    return await extract_main_content(page)
