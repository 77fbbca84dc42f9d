"""Supabase client for the Python backend."""

import logging
from functools import lru_cache
from supabase import create_client, Client
from ..config import settings


@lru_cache()
def get_supabase_client() -> Client | None:
    """Get cached Supabase client instance.

    Returns:
        Supabase Client instance if configured, None otherwise.
        Note: This does not test the connection - actual queries may fail with network errors.
    """
    if not settings.supabase_url or not settings.supabase_key:
        logging.warning("Supabase credentials not configured (missing URL or key)")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logging.error(f"Failed to create Supabase client: {e}")
        return None


# Tables used by the tracker:
#
#   imports                 (id, kind, file_names, created_at)
#   raw_erp_rows            (id, import_id, data jsonb)
#   raw_logistics_rows      (id, import_id, data jsonb)
#   consolidated_orders     (id, internal_id unique, ... see ConsolidatedOrder.to_record)
#   order_overrides         (internal_id pk, phase, reason, resolution)
#   holidays                (id, day date, description)
#   route_costs             (route pk, cost, updated_at)
#   routes                  (id, municipality, neighborhood, name)
#   daily_picking_tracker   (internal_id, reference_date, unique(internal_id, reference_date))
