# voicegig/services/supabase_service.py
"""
Central Supabase client for the backend (uses service_role key → full access,
bypasses RLS on ledger and payouts).
Never expose this key to frontend code.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from flask import current_app
from supabase import create_client, Client, ClientOptions

logger = logging.getLogger(__name__)


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SupabaseService:
    def __init__(self, url: Optional[str], key: Optional[str], client: Optional[Client] = None):
        if client is None:
            if not url:
                raise ValueError("SUPABASE_URL is missing")
            if not key:
                raise ValueError("SUPABASE_SERVICE_ROLE_KEY is missing")

            logger.info(f"Initializing Supabase client with URL: {url}")
            client = create_client(
                url,
                key,
                options=ClientOptions(
                    auto_refresh_token=False,
                    persist_session=False,
                    postgrest_client_timeout=90,
                ),
            )

        self.client = client
        self.table = self.client.table

    # ──────────────────────────────────────────────
    # Generic CRUD
    # ──────────────────────────────────────────────

    def get_by_id(self, table: str, id: str, select: str = "*") -> Optional[Dict]:
        try:
            res = self.client.table(table).select(select).eq("id", id).maybe_single().execute()
            return res.data if res else None
        except Exception as e:
            logger.error(f"get_by_id failed on {table}/{id}: {e}")
            return None

    def insert(self, table: str, data: Dict) -> Optional[Dict]:
        try:
            res = self.client.table(table).insert(data).execute()
            return res.data[0] if res.data else None
        except Exception as e:
            logger.error(f"insert failed on {table}: {e}", exc_info=True)
            return None

    def update(self, table: str, id: str, data: Dict) -> Optional[Dict]:
        try:
            res = self.client.table(table).update(data).eq("id", id).execute()
            return res.data[0] if res.data else None
        except Exception as e:
            logger.error(f"update failed on {table}/{id}: {e}")
            return None

    def update_where(self, table: str, filters: Dict[str, Any], data: Dict) -> List[Dict]:
        """Update every row matching all equality filters."""
        try:
            query = self.client.table(table).update(data)
            for k, v in filters.items():
                query = query.eq(k, v)
            return query.execute().data or []
        except Exception as e:
            logger.error(f"update_where failed on {table} {filters}: {e}")
            return []

    # ──────────────────────────────────────────────
    # Convenience
    # ──────────────────────────────────────────────

    def get_profile(self, user_id: str, select: str = "*") -> Optional[Dict]:
        return self.get_by_id("profiles", user_id, select=select)

    def update_profile(self, user_id: str, data: Dict) -> Optional[Dict]:
        return self.update("profiles", user_id, {**data, "updated_at": utcnow_iso()})

    def is_admin(self, user_id: str) -> bool:
        res = self.client.table("admins")\
            .select("admin_level")\
            .eq("id", user_id)\
            .maybe_single().execute()
        return bool(res and res.data)


def get_supabase() -> SupabaseService:
    """Return the app-wide service, creating it on first use."""
    service = current_app.extensions.get("supabase")
    if service is None:
        service = SupabaseService(
            current_app.config.get("SUPABASE_URL"),
            current_app.config.get("SUPABASE_SERVICE_ROLE_KEY"),
        )
        current_app.extensions["supabase"] = service
    return service
