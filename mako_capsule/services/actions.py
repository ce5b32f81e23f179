"""Call-to-action extraction: buttons and CTA links matched against ACTION_PATTERNS."""

import re
from typing import List, Set

from bs4 import BeautifulSoup, Tag

from mako_capsule.models.capsule import Action
from mako_capsule.services.vocabulary import ACTION_PATTERNS

MAX_ACTIONS = 5
MAX_LABEL_LENGTH = 50

# Candidate interactive elements, visited selector by selector in this order
_CANDIDATE_SELECTORS = (
    "button",
    'input[type="submit"]',
    'a[class*="btn"]',
    'a[class*="button"]',
    'a[class*="cta"]',
    '[role="button"]',
    '[class*="cta"]',
)

_WHITESPACE_RE = re.compile(r"\s+")


def element_label(element: Tag) -> str:
    """Visible label of an interactive element."""
    if element.name == "input":
        return str(element.get("value", "")).strip()

    aria = str(element.get("aria-label", "")).strip()
    if aria:
        return aria

    return _WHITESPACE_RE.sub(" ", element.get_text()).strip()


def match_action(label: str):
    """Return ``(name, description)`` of the first pattern matching *label*, or None."""
    for pattern, name, description in ACTION_PATTERNS:
        if pattern.search(label):
            return name, description
    return None


def extract_actions(html: str) -> List[Action]:
    """Extract up to five distinct actions from *html*.

    The first pattern that matches an element's label decides its action;
    an element whose action was already collected is ignored.
    """
    actions: List[Action] = []
    if not html or not html.strip():
        return actions

    soup = BeautifulSoup(html, "lxml")
    seen: Set[str] = set()

    for selector in _CANDIDATE_SELECTORS:
        for element in soup.select(selector):
            if len(actions) >= MAX_ACTIONS:
                return actions

            label = element_label(element)
            if not label or len(label) > MAX_LABEL_LENGTH:
                continue

            matched = match_action(label)
            if matched is None or matched[0] in seen:
                continue

            name, description = matched
            seen.add(name)
            actions.append(Action(name=name, description=description))

    return actions


def limit_actions(actions: List[Action]) -> List[Action]:
    """Drop repeated action names and keep at most :data:`MAX_ACTIONS`."""
    seen: Set[str] = set()
    limited: List[Action] = []
    for action in actions:
        if action.name in seen:
            continue
        seen.add(action.name)
        limited.append(action)
        if len(limited) >= MAX_ACTIONS:
            break
    return limited
