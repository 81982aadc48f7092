"""Target resolution.

Turns a partial :class:`~scarff.models.Target` into a validated
:class:`~scarff.models.ResolvedTarget`, recording every inferred axis, then
selects the one template that ships for the resolved tuple.

Quick usage::

    from scarff.matrix import builtin_matrix
    from scarff.resolver import Resolver
    from scarff.scaffolder.store import TemplateStore

    resolver = Resolver(builtin_matrix(), TemplateStore.builtin())
    resolution = resolver.resolve(Target(language="rust", project_type="cli"))
    resolution.target          # rust cli (layered)
    resolution.inferred        # architecture, framework (matrix-default)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from scarff.errors import (
    IncompatibleArchitecture,
    IncompatibleFramework,
    MissingRequiredField,
    TemplateNotFound,
    UnsupportedCombination,
)
from scarff.matrix import CompatibilityMatrix
from scarff.models import (
    Architecture,
    InferenceSource,
    InferredField,
    Language,
    ProjectType,
    Resolution,
    ResolvedTarget,
    Target,
)

if TYPE_CHECKING:
    from scarff.scaffolder.store import TemplateStore

logger = logging.getLogger(__name__)


class Resolver:
    """Resolves partial targets against a matrix and a template store.

    Resolution is a pure function of the raw target, the default policy and
    the (immutable) matrix; the resolver holds no per-call state.
    """

    def __init__(
        self,
        matrix: CompatibilityMatrix,
        store: Optional["TemplateStore"] = None,
    ) -> None:
        self.matrix = matrix
        self.store = store

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve_target(
        self,
        raw: Target,
        default_language: Optional[Language] = None,
        *,
        default_project_type: Optional[ProjectType] = None,
        default_architecture: Optional[Architecture] = None,
    ) -> Resolution:
        """Fill and validate every axis of *raw*.

        Axes are resolved in a fixed order (language, project type,
        architecture, framework) because each step assumes the earlier axes
        are fixed.  Explicit values are never replaced.

        The ``default_*`` arguments are user policy.  A policy project type
        or architecture the matrix does not allow for the resolved language
        is skipped in favour of the built-in default, never reported as an
        error, because the user did not ask for it on this run.

        Raises:
            MissingRequiredField: no language and no default policy.
            UnsupportedCombination: the language has no such project type.
            IncompatibleArchitecture: explicit architecture not allowed.
            IncompatibleFramework: explicit framework not allowed.
        """
        inferred: list[InferredField] = []

        # 1. language
        language = raw.language
        if language is None:
            if default_language is None:
                raise MissingRequiredField("language")
            language = Language(default_language)
            inferred.append(_inferred("language", language, InferenceSource.POLICY))

        # 2. project_type
        project_type = raw.project_type
        if project_type is None:
            project_type, source = self._infer_project_type(
                language, raw, default_project_type
            )
            inferred.append(_inferred("project_type", project_type, source))

        # 3. matrix entry
        entry = self.matrix.entry(language, project_type)
        if entry is None:
            raise UnsupportedCombination(
                language, project_type, self.matrix.project_types_for(language)
            )

        # 4. architecture
        architecture = raw.architecture
        if architecture is None:
            if default_architecture is not None and default_architecture in entry.architectures:
                architecture = Architecture(default_architecture)
                source = InferenceSource.POLICY
            else:
                if default_architecture is not None:
                    logger.debug(
                        "Default architecture %s not allowed for %s; using the matrix default",
                        default_architecture, entry.label,
                    )
                architecture = entry.default_architecture
                source = InferenceSource.MATRIX_DEFAULT
            inferred.append(_inferred("architecture", architecture, source))
        elif architecture not in entry.architectures:
            raise IncompatibleArchitecture(architecture, entry.architectures, entry.label)

        # 5. framework
        framework = raw.framework
        if framework is None:
            framework = entry.default_framework
            inferred.append(_inferred("framework", framework, InferenceSource.MATRIX_DEFAULT))
        elif framework not in entry.frameworks:
            home = self.matrix.framework_project_type(language, framework)
            raise IncompatibleFramework(
                framework,
                entry.frameworks,
                entry.label,
                suggested_type=home if home is not None and home != project_type else None,
            )

        target = ResolvedTarget(
            language=language,
            project_type=project_type,
            architecture=architecture,
            framework=framework,
        )
        for item in inferred:
            logger.debug("Inferred %s=%s (%s)", item.field, item.value, item.source.value)
        logger.info("Resolved target: %s", target)

        return Resolution(
            target=target,
            explicit=raw.explicit_fields(),
            inferred=tuple(inferred),
        )

    def resolve(
        self,
        raw: Target,
        default_language: Optional[Language] = None,
        *,
        default_project_type: Optional[ProjectType] = None,
        default_architecture: Optional[Architecture] = None,
    ) -> Resolution:
        """Resolve *raw* and select its template.

        Matrix validity is checked first, so an illegal combination is always
        reported as a compatibility error rather than a missing template.

        Raises:
            TemplateNotFound: the matrix allows the target but nothing ships.
        """
        if self.store is None:
            raise RuntimeError("Resolver.resolve() needs a template store")

        resolution = self.resolve_target(
            raw,
            default_language,
            default_project_type=default_project_type,
            default_architecture=default_architecture,
        )
        template = self.store.lookup(resolution.target)
        if template is None:
            available = [
                t.target
                for t in self.store.templates()
                if t.target.language == resolution.target.language
            ]
            raise TemplateNotFound(resolution.target, available)

        logger.debug("Selected template %s", template.id)
        return resolution.model_copy(update={"template": template})

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _infer_project_type(
        self,
        language: Language,
        raw: Target,
        policy: Optional[ProjectType],
    ) -> tuple[ProjectType, InferenceSource]:
        """Framework home first, then the user's policy, then the language default."""
        if raw.framework is not None:
            home = self.matrix.framework_project_type(language, raw.framework)
            if home is not None:
                return home, InferenceSource.FRAMEWORK
        if policy is not None:
            if self.matrix.entry(language, policy) is not None:
                return ProjectType(policy), InferenceSource.POLICY
            logger.debug("Default project type %s not offered for %s; ignoring it", policy, language.value)
        return self.matrix.profile(language).default_project_type, InferenceSource.LANGUAGE_DEFAULT


def _inferred(field: str, value: object, source: InferenceSource) -> InferredField:
    return InferredField(field=field, value=str(getattr(value, "value", value)), source=source)
