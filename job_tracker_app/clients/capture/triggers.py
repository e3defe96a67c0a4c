"""Decides whether a click on a job page means "the user just applied"."""
from bs4 import Tag

from .sites import class_names, element_text

APPLY_TEXTS = frozenset({"apply", "apply now", "easy apply"})
APPLY_LABEL_PHRASES = ("apply to job", "easy apply")
CLICKABLE_TAGS = ("button", "a")
EXCLUDED_CLASS_MARKERS = ("nav", "menu", "tab")


def _looks_like_apply(element: Tag) -> bool:
    text = element_text(element).lower()
    label = (element.get("aria-label") or "").lower()
    return text in APPLY_TEXTS or any(phrase in label for phrase in APPLY_LABEL_PHRASES)


def _is_clickable(element: Tag) -> bool:
    return element.name in CLICKABLE_TAGS or element.get("role") == "button"


def _inside_excluded_container(element: Tag) -> bool:
    node = element
    while isinstance(node, Tag):
        if node.get("role") == "dialog" or "extension-popup" in class_names(node).split():
            return True
        node = node.parent
    return False


def is_navigation_or_popup(element: Tag) -> bool:
    classes = class_names(element).lower()
    if any(marker in classes for marker in EXCLUDED_CLASS_MARKERS):
        return True
    return _inside_excluded_container(element)


def is_apply_trigger(element: Tag) -> bool:
    """True for a real apply button or link outside navigation, menus and dialogs."""
    if not (_looks_like_apply(element) and _is_clickable(element)):
        return False
    return not is_navigation_or_popup(element)
