"""Optional extension points of the generator.

Each hook is a plain callable passed in per call; there is no global
registry. A hook that returns ``None`` (or an empty value) leaves the default
behaviour in place. Enrichers run in list order, each receiving the previous
one's output.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, Union

from mako_capsule.models.capsule import Action, LinkSet
from mako_capsule.models.source import SourceDocument

logger = logging.getLogger(__name__)

EntityTitleResolver = Callable[[SourceDocument], Optional[str]]
ContentTypeResolver = Callable[[SourceDocument, str], Optional[str]]
LanguageResolver = Callable[[SourceDocument], Optional[str]]
SectionTemplateResolver = Callable[[List[str], str], Optional[List[str]]]
ActionsFilter = Callable[[List[Action], str], Optional[List[Action]]]
LinksFilter = Callable[[LinkSet, str], Optional[LinkSet]]
FrontmatterEnricher = Callable[[Dict[str, Any], SourceDocument], Optional[Dict[str, Any]]]
BodyEnricher = Callable[[str, SourceDocument], Optional[str]]


@dataclass
class GeneratorHooks:
    entity_title: Optional[EntityTitleResolver] = None
    content_type: Optional[ContentTypeResolver] = None
    language: Optional[LanguageResolver] = None
    section_template: Optional[SectionTemplateResolver] = None
    actions: Optional[ActionsFilter] = None
    links: Optional[LinksFilter] = None
    frontmatter_enrichers: List[FrontmatterEnricher] = field(default_factory=list)
    body_enrichers: List[BodyEnricher] = field(default_factory=list)


def call_hook(hook: Optional[Callable], *args: Any) -> Any:
    """Invoke *hook*, returning ``None`` when it is unset or raises."""
    if hook is None:
        return None
    try:
        return hook(*args)
    except Exception as exc:
        logger.warning("Hook %s failed: %s", getattr(hook, "__name__", repr(hook)), exc)
        return None


def run_chain(
    hooks: List[Callable],
    value: Any,
    *args: Any,
    expected: Union[Type, Tuple[Type, ...], None] = None,
) -> Any:
    """Pass *value* through each hook in order; failing or empty hooks are skipped.

    With *expected* set, a result of any other type is logged and skipped,
    so the next hook receives the previous value.
    """
    for hook in hooks:
        result = call_hook(hook, value, *args)
        if result is None:
            continue
        if expected is not None and not isinstance(result, expected):
            logger.warning(
                "Hook %s returned %s, keeping the previous value",
                getattr(hook, "__name__", repr(hook)),
                type(result).__name__,
            )
            continue
        value = result
    return value
