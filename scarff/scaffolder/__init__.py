"""Scarff scaffolder -- template catalog, rendering and the atomic transaction.

Quick usage::

    from scarff.scaffolder import TemplateRenderer, TemplateStore, ScaffoldTransaction

    store = TemplateStore.builtin()
    template = store.get("rust-cli-layered")
    context = RenderContext.build("my-tool", template.target, builtin_matrix())
    project = TemplateRenderer().render(template, context)
    ScaffoldTransaction().commit(project, "./my-tool")
"""

from scarff.scaffolder.generator import ProjectGenerator
from scarff.scaffolder.store import TemplateStore
from scarff.scaffolder.templates import RenderContext, TemplateRenderer
from scarff.scaffolder.transaction import ScaffoldTransaction

__all__ = [
    "ProjectGenerator",
    "RenderContext",
    "ScaffoldTransaction",
    "TemplateRenderer",
    "TemplateStore",
]
