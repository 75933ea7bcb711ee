"""Report fixtures and attachments consumed by the Allure renderer."""

from .attachments import (
    AllureAttacher,
    ArtifactKind,
    Attacher,
    DiagnosticArtifact,
)
from .environment import (
    EnvironmentDescriptor,
    build_environment_descriptor,
    write_environment,
)
from .fixtures import (
    DEFAULT_CATEGORIES,
    CategoryRule,
    ExecutorDescriptor,
    build_executor_descriptor,
    install_categories,
    load_categories,
    write_executor,
)
from .results_dir import clean_results_dir

__all__ = [
    'AllureAttacher',
    'ArtifactKind',
    'Attacher',
    'CategoryRule',
    'DEFAULT_CATEGORIES',
    'DiagnosticArtifact',
    'EnvironmentDescriptor',
    'ExecutorDescriptor',
    'build_environment_descriptor',
    'build_executor_descriptor',
    'clean_results_dir',
    'install_categories',
    'load_categories',
    'write_environment',
    'write_executor',
]
