"""Read-side views over the consolidated orders."""

from .costs import delivered_route_costs, route_table_costs
from .dashboard import dashboard_stats
from .orders import kanban_board, list_orders
from .production import production_summary
from .returns import OverrideNotFoundError, clear_override, list_returns, mark_returned, set_resolution

__all__ = [
    "list_orders",
    "kanban_board",
    "list_returns",
    "mark_returned",
    "set_resolution",
    "clear_override",
    "OverrideNotFoundError",
    "dashboard_stats",
    "production_summary",
    "route_table_costs",
    "delivered_route_costs",
]
