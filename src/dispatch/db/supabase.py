"""Supabase client for Python backend."""

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
        client = create_client(settings.supabase_url, settings.supabase_key)
        return client
    except Exception as e:
        logging.error(f"Failed to create Supabase client: {e}")
        return None


# Tables used by the dispatch workflow:
#
#   orders(id, user_full_name, user_phone, delivery_address, delivery_city,
#          delivery_postal_code, package_name, delivery_start_date, delivery_end_date)
#   drivers(id, full_name, is_active)
#   delivery_schedule(event_date UNIQUE, is_delivery_enabled, notes)
#   geocoded_addresses(order_id UNIQUE, full_address_text, latitude, longitude,
#                      geocoding_provider)
#   driver_assignments(id, order_id, driver_id, assigned_date, status, driver_name,
#                      customer_name, customer_phone, full_delivery_address,
#                      delivery_city, package_name, UNIQUE(order_id, assigned_date))
#   optimized_routes(driver_id, route_date, UNIQUE(driver_id, route_date),
#                    driver_name, start_address_text, start_latitude, start_longitude,
#                    ordered_stops JSONB, route_geometry, total_duration_seconds,
#                    total_distance_meters, status, optimized_at)
