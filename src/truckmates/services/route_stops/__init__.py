"""Route stop services."""

from .service import (
    create_route_stop,
    delete_route_stop,
    get_route_stops,
    get_route_summary,
    reorder_route_stops,
    summarize_stops,
    update_route_stop,
)

__all__ = [
    "create_route_stop",
    "delete_route_stop",
    "get_route_stops",
    "get_route_summary",
    "reorder_route_stops",
    "summarize_stops",
    "update_route_stop",
]
