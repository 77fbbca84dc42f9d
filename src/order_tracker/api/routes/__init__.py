"""Route group exports."""

from . import costs, dashboard, health, imports, orders, returns, settings

__all__ = ["health", "imports", "orders", "returns", "dashboard", "costs", "settings"]
