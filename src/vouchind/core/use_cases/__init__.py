from vouchind.core.use_cases.handlers import HANDLERS, HandlerContext
from vouchind.core.use_cases.index_events import IndexEventsService, IndexStats

__all__ = [
    "HANDLERS",
    "HandlerContext",
    "IndexEventsService",
    "IndexStats",
]
