"""Scarff -- deterministic project scaffolding.

Resolves a (possibly partial) target description into a validated template
selection, renders the template's files in memory, and commits them to disk
as a single atomic transaction.

Quick usage::

    from scarff import ProjectGenerator, ScaffoldRequest, Target

    request = ScaffoldRequest(
        target=Target(language="rust", project_type="cli"),
        project_name="my-tool",
        destination="./my-tool",
    )
    report = ProjectGenerator.default().generate(request)
"""

from scarff.models import (
    Architecture,
    Framework,
    Language,
    ProjectType,
    ResolvedTarget,
    ScaffoldMode,
    ScaffoldReport,
    ScaffoldRequest,
    Target,
)
from scarff.scaffolder.generator import ProjectGenerator

__all__ = [
    "Architecture",
    "Framework",
    "Language",
    "ProjectGenerator",
    "ProjectType",
    "ResolvedTarget",
    "ScaffoldMode",
    "ScaffoldReport",
    "ScaffoldRequest",
    "Target",
]

__version__ = "0.1.0"
