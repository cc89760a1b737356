"""Helper utilities shared by the stage experts."""

import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from ..config.settings import settings
from ..errors import EmbeddingUnavailable
from ..services.retriever import format_context
from .logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class StageOutput(Generic[T]):
    """Items produced by a stage together with the prompt that produced them."""

    items: List[T]
    prompt: str = ""
    warnings: List[str] = field(default_factory=list)
    salvaged: bool = False


def dump_raw_output(stage: str, raw: str, directory: Optional[str] = None, debug: Optional[bool] = None) -> Optional[str]:
    """Keep the unparseable model output for diagnosis.

    In debug mode the output is logged instead of written to disk.

    Returns:
        Optional[str]: Path of the written file, or None when nothing was written
    """
    debug = settings.debug_raw_output if debug is None else debug
    if debug:
        logger.error("Raw model output", stage=stage, output=raw[:400])
        return None

    directory = directory or settings.raw_dump_dir
    timestamp = datetime.now().strftime("%Y%m%d%H%M%S%f")
    path = os.path.join(directory, f"brandscape-raw-{stage}-{timestamp}.txt")
    try:
        os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(raw or "")
    except OSError as e:
        logger.error("Could not write raw output", stage=stage, path=path, error=str(e))
        return None
    logger.error("Raw model output saved", stage=stage, path=path)
    return path


async def retrieve_context(retriever, sources, query: str, separator: str = "\n\n"):
    """Run retrieval and render the context string.

    Skipped sources come back as warnings. An embedding failure drops the
    context instead of passing along misaligned chunks and adds a warning too.

    Returns:
        Tuple[str, List[str]]: Context text and warnings
    """
    documents, warnings = await retriever.gather_documents(sources)
    warnings = [f"Context source unavailable: {w}" for w in warnings]
    try:
        chunks = await retriever.rank_documents(documents, query)
    except EmbeddingUnavailable as e:
        logger.warning("Embedding unavailable; generating without retrieved context", error=str(e))
        return "", warnings + [f"Context retrieval failed: {e}"]
    return format_context(chunks, separator), warnings
