"""The compilation pipeline.

Stages run in a fixed order over the whole document set since each one
reads what the previous stage wrote: pagination appends refetch queries
that the list transform must see, and the compiler needs the fragments
and directives the list transform generates.
"""

import logging

from .artifacts import compile_artifacts
from .config import CompilerConfig
from .ir import Artifact, Document
from .lists import ListRegistry, add_list_fragments
from .paginate import paginate

logger = logging.getLogger(__name__)


def run_pipeline(config: CompilerConfig, documents: list[Document]) -> list[Artifact]:
    """Transform ``documents`` in place and compile them into artifacts.

    Any error aborts the run; no artifacts are returned for a document set
    that failed a stage.
    """
    collected = len(documents)

    refetch_queries = paginate(config, documents)

    registry = ListRegistry(config)
    add_list_fragments(config, documents, registry)

    artifacts = compile_artifacts(config, documents, registry)

    logger.info(
        "Compiled %d artifacts from %d documents (%d refetch queries, %d lists)",
        len(artifacts), collected, len(refetch_queries), len(registry),
    )
    return artifacts
