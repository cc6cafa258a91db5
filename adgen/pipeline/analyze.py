"""
Stage 1: Product Analysis - Gemini Flash.

Never fails on service trouble: the reasoning client answers with a
placeholder descriptor instead.
"""

import logging
from typing import Optional

from .. import gemini
from .models import Credentials, ProductDescriptor, ReasoningModel

logger = logging.getLogger(__name__)


async def analyze_source(
    source_url: str,
    credentials: Credentials,
    reference_image: Optional[str] = None,
    model: ReasoningModel = ReasoningModel.GEMINI_3_FLASH,
) -> ProductDescriptor:
    """
    Derive the session's ProductDescriptor from a product URL.

    Args:
        source_url:      Product page URL.
        credentials:     Session credentials; the Gemini key is used.
        reference_image: Optional user-uploaded image (data URL) merged into the result.
        model:           Reasoning model variant.
    """
    logger.info(f"Analyzing product source: {source_url}")
    product = await gemini.analyze(credentials.gemini, source_url, model=model)

    if reference_image:
        product = product.model_copy(update={"image_url": reference_image})
    return product
