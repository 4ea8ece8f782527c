"""Validation and expansion of the ``[dependency-groups]`` manifest table."""

from .build import (  # noqa: F401
    strip_dependency_groups,
    strip_dependency_groups_text,
    strip_manifest_file,
)
from .errors import (  # noqa: F401
    CyclicDependencyGroupError,
    DependencyGroupValidationError,
    DependencyGroupsError,
    ManifestStripError,
    UnknownDependencyGroupError,
)
from .linter import has_errors, lint_table  # noqa: F401
from .loader import DependencyGroupsLoader, build_table, read_manifest  # noqa: F401
from .models import (  # noqa: F401
    DependencyGroup,
    DependencyGroupsTable,
    IncludeEntry,
    LinterIssue,
    PathEntry,
    RequirementEntry,
)
from .resolver import ResolvedGroups, merge_path_entries, resolve  # noqa: F401
from .schema import check_group_name, iter_schema_issues, load_schema  # noqa: F401

__version__ = "0.1.0"

__all__ = [
    "CyclicDependencyGroupError",
    "DependencyGroup",
    "DependencyGroupValidationError",
    "DependencyGroupsError",
    "DependencyGroupsLoader",
    "DependencyGroupsTable",
    "IncludeEntry",
    "LinterIssue",
    "ManifestStripError",
    "PathEntry",
    "RequirementEntry",
    "ResolvedGroups",
    "UnknownDependencyGroupError",
    "build_table",
    "check_group_name",
    "has_errors",
    "iter_schema_issues",
    "lint_table",
    "load_schema",
    "merge_path_entries",
    "read_manifest",
    "resolve",
    "strip_dependency_groups",
    "strip_dependency_groups_text",
    "strip_manifest_file",
]
