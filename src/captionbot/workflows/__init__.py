from __future__ import annotations

import random
from typing import Optional

from ..config import Settings
from ..conversation.router import ErrorReporter, Router
from ..conversation.state import StateStore
from ..services.image_fetcher import ImageFetcher
from ..services.image_service import ImageService
from ..services.moderation_queue import ModerationQueue
from ..services.stats import RuntimeStats
from .approve import ApproveWorkflow
from .general import RandomCaption, help_handler
from .suggest import SuggestWorkflow


def build_router(
    settings: Settings,
    queue: ModerationQueue,
    images: ImageService,
    fetcher: ImageFetcher,
    store: Optional[StateStore] = None,
    stats: Optional[RuntimeStats] = None,
    on_error: Optional[ErrorReporter] = None,
    rng: Optional[random.Random] = None,
) -> Router:
    """Wire every handler in priority order.

    The random caption handler matches any message with a photo, so it goes
    last where it cannot shadow a workflow waiting for text.
    """
    router = Router(store if store is not None else StateStore(), stats=stats, on_error=on_error)
    router.register(
        help_handler(),
        ApproveWorkflow(queue, settings.admin_ids, settings.review_page_size).build(),
        SuggestWorkflow(queue).build(),
        RandomCaption(
            queue,
            images,
            fetcher,
            trigger=settings.random_caption_trigger,
            chance_percent=settings.random_caption_chance_percent,
            rng=rng,
        ).handler(),
    )
    return router
