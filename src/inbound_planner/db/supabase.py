"""Supabase client for the planner backend."""

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


# Typical queries issued by the planner:
#
# from .db.supabase import get_supabase_client
#
# client = get_supabase_client()
#
# # Eligible pickup requests for one shift
# client.table('farmer_orders') \
#     .select('*') \
#     .eq('logistic_center_id', 'lc-1') \
#     .eq('pickup_date', '2025-03-02') \
#     .eq('shift', 'morning') \
#     .eq('farmer_status', 'ok') \
#     .execute()
#
# # Batch insert of planned trips (one statement, all rows or none)
# client.table('farmer_deliveries').insert(rows).execute()
