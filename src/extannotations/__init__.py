"""External nullability annotation resolution and caching.

Quick start::

    from extannotations import CachingExternalAnnotationsResolver

    resolver = CachingExternalAnnotationsResolver()
    resolver.ensure_scanned()
    if resolver.has_annotation_for_symbol(symbol, False, compilation):
        ...  # already annotated externally, do not report

The library only emits structlog events. A host that wants the configured
outputs applies them once at startup::

    from extannotations.config import load_config
    from extannotations.core import configure_logging

    configure_logging(config=load_config().logging)
"""

from extannotations.core.errors import MissingExternalAnnotationsError
from extannotations.loading import (
    AssemblyExternalAnnotationsLoader,
    FolderExternalAnnotationsLoader,
)
from extannotations.parsing import AnnotationDocumentParser
from extannotations.providers import (
    GlobalAnnotationCacheProvider,
    LocalAnnotationCacheProvider,
    reset_global_cache,
    set_global_cache_factory,
)
from extannotations.resolvers import (
    CachingExternalAnnotationsResolver,
    ExternalAnnotationsResolver,
    GlobalExternalAnnotationsResolver,
    SimpleExternalAnnotationsResolver,
)
from extannotations.storage import AnnotationMap, AnnotationsCache, MemberNullabilityInfo

__version__ = "0.1.0"

__all__ = [
    "AnnotationDocumentParser",
    "AnnotationMap",
    "AnnotationsCache",
    "AssemblyExternalAnnotationsLoader",
    "CachingExternalAnnotationsResolver",
    "ExternalAnnotationsResolver",
    "FolderExternalAnnotationsLoader",
    "GlobalAnnotationCacheProvider",
    "GlobalExternalAnnotationsResolver",
    "LocalAnnotationCacheProvider",
    "MemberNullabilityInfo",
    "MissingExternalAnnotationsError",
    "SimpleExternalAnnotationsResolver",
    "reset_global_cache",
    "set_global_cache_factory",
]
