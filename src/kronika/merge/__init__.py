"""Entity state merging from session change-directives."""

from kronika.merge.state_merger import (
    MergeReport,
    SkippedDirective,
    StateMerger,
    merge_state,
    route_tag,
)

__all__ = [
    "MergeReport",
    "SkippedDirective",
    "StateMerger",
    "merge_state",
    "route_tag",
]
