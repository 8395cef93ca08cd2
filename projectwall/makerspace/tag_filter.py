"""
Tag based inclusion rules and display tag cleanup
"""

from dataclasses import dataclass, field
from typing import List

from . import config

TAG_FILTER_MODES = ("any", "all")


@dataclass
class TagFilterConfig:
    """Which projects to keep and which tags to hide"""
    enabled: bool = True
    mode: str = "any"  # 'any' = at least one required tag, 'all' = every required tag
    required_tags: List[str] = field(default_factory=list)
    excluded_tags: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.mode = (self.mode or "any").strip().lower()
        if self.mode not in TAG_FILTER_MODES:
            raise ValueError(f"Unknown tag filter mode '{self.mode}', expected one of {TAG_FILTER_MODES}")

    @classmethod
    def from_config(cls) -> "TagFilterConfig":
        return cls(
            enabled=config.TAG_FILTER_ENABLED,
            mode=config.TAG_FILTER_MODE,
            required_tags=list(config.REQUIRED_TAGS),
            excluded_tags=list(config.EXCLUDED_TAGS),
        )

    def describe(self) -> str:
        if not self.enabled:
            return "Tag filtering disabled - including all projects"
        wanted = "ALL" if self.mode == "all" else "ANY"
        return f"Tag filtering enabled: requiring {wanted} of [{', '.join(self.required_tags)}]"


def _normalize(tags: List[str]) -> List[str]:
    return [tag.lower().strip() for tag in tags]


def matches_tag_filter(tags: List[str], filter_config: TagFilterConfig) -> bool:
    """
    Decide whether a project with these tags is kept.

    A required tag matches when it is a case-insensitive substring of any
    project tag, so "makerspace" matches "Makerspace Project".
    """
    if not filter_config.enabled:
        return True

    if not tags:
        return False

    project_tags = _normalize(tags)
    required_tags = _normalize(filter_config.required_tags)

    def present(required: str) -> bool:
        return any(required in tag for tag in project_tags)

    if filter_config.mode == "all":
        return all(present(required) for required in required_tags)
    return any(present(required) for required in required_tags)


def should_exclude_tag(tag: str, excluded_tags: List[str]) -> bool:
    normalized = tag.lower().strip()
    return any(
        excluded in normalized or normalized in excluded
        for excluded in _normalize(excluded_tags)
    )


def display_tags(tags: List[str], excluded_tags: List[str]) -> List[str]:
    """Tags with the nuisance ones removed; used for presentation only."""
    return [tag for tag in tags if not should_exclude_tag(tag, excluded_tags)]
