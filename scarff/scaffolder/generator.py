"""Main scaffolding orchestrator.

Runs one invocation of the pipeline: resolve the requested target, render the
selected template, commit the result through a :class:`ScaffoldTransaction`,
and build the caller-facing :class:`~scarff.models.ScaffoldReport`.  Every
validation (resolution, project name, rendering, destination pre-flight)
completes before the first byte is written.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from scarff.config import Config
from scarff.matrix import CompatibilityMatrix, builtin_matrix
from scarff.models import ScaffoldReport, ScaffoldRequest
from scarff.resolver import Resolver
from scarff.scaffolder.store import TemplateStore
from scarff.scaffolder.templates import RenderContext, TemplateRenderer
from scarff.scaffolder.transaction import ScaffoldTransaction

logger = logging.getLogger(__name__)


class ProjectGenerator:
    """Wires the matrix, store, renderer and transaction together.

    Usage::

        generator = ProjectGenerator.default()
        report = generator.generate(
            ScaffoldRequest(
                target=Target(language="rust", project_type="cli"),
                project_name="my-tool",
                destination="my-tool",
            )
        )
    """

    def __init__(
        self,
        matrix: CompatibilityMatrix,
        store: TemplateStore,
        *,
        renderer: Optional[TemplateRenderer] = None,
        transaction: Optional[ScaffoldTransaction] = None,
    ) -> None:
        self.matrix = matrix
        self.store = store
        self.resolver = Resolver(matrix, store)
        self.renderer = renderer or TemplateRenderer()
        self.transaction = transaction or ScaffoldTransaction()

    @classmethod
    def default(cls, config: Optional[Config] = None) -> "ProjectGenerator":
        """Built-in matrix plus the built-in store, or ``config.templates_dir``."""
        matrix = builtin_matrix()
        if config is not None and config.templates_dir is not None:
            store = TemplateStore.from_directory(config.templates_dir, matrix)
        else:
            store = TemplateStore.builtin()
        return cls(matrix, store)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def generate(self, request: ScaffoldRequest) -> ScaffoldReport:
        """Run resolve -> render -> commit for *request*.

        Raises:
            ScarffError: any subclass; nothing is left on disk when raised.
        """
        resolution = self.resolver.resolve(
            request.target,
            request.default_language,
            default_project_type=request.default_project_type,
            default_architecture=request.default_architecture,
        )
        template = resolution.template
        assert template is not None  # resolve() always selects one

        context = RenderContext.build(
            request.project_name,
            resolution.target,
            self.matrix,
            template.dependencies,
        )
        project = self.renderer.render(template, context)
        template_steps = self.renderer.render_lines(
            template.next_steps, context, f"{template.id}:next_steps"
        )
        outcome = self.transaction.commit(project, request.destination, request.mode)

        next_steps = [f"cd {_display_path(outcome.destination)}", *template_steps]

        return ScaffoldReport(
            project_name=request.project_name,
            template_id=template.id,
            target=resolution.target,
            explicit=resolution.explicit,
            inferred=resolution.inferred,
            destination=outcome.destination,
            files=outcome.files,
            dependencies=template.dependencies,
            simulated=outcome.simulated,
            replaced_existing=outcome.replaced_existing,
            next_steps=tuple(next_steps),
        )


def _display_path(path: Path) -> str:
    """Relative to the working directory when possible, for ``cd`` hints."""
    try:
        relative = path.relative_to(Path.cwd())
    except ValueError:
        return str(path)
    return str(relative) or "."
