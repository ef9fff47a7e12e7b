"""
Activity Logging Service
Records admin actions and reads them back for the dashboard
"""

import json
import logging
import uuid
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from databases import Database

logger = logging.getLogger(__name__)


class ActivityLogService:
    """Service for activity logging operations"""

    def __init__(self, database: Database):
        self.database = database

    async def log_activity(
        self,
        admin_id: Optional[str],
        action: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None,
        ip_address: Optional[str] = None
    ) -> str:
        """
        Log an activity

        Args:
            admin_id: Admin ID who performed the action
            action: Action type (e.g., 'create_template', 'update_certificate_status')
            resource_type: Type of resource affected ('template' or 'certificate')
            resource_id: ID of the resource
            details: Additional JSON details
            ip_address: IP address of the request

        Returns:
            ID of the created log entry
        """
        log_id = str(uuid.uuid4())
        await self.database.execute(
            """
            INSERT INTO activity_logs (id, admin_id, action, resource_type, resource_id, details, ip_address)
            VALUES (:id, :admin_id, :action, :resource_type, :resource_id, :details, :ip_address)
            """,
            {
                "id": log_id,
                "admin_id": admin_id,
                "action": action,
                "resource_type": resource_type,
                "resource_id": resource_id,
                "details": json.dumps(details) if details else None,
                "ip_address": ip_address
            }
        )
        return log_id

    async def record(self, admin_id: Optional[str], action: str, **kwargs) -> None:
        """log_activity that never fails the calling operation"""
        try:
            await self.log_activity(admin_id, action, **kwargs)
        except Exception as e:
            logger.warning("Failed to log activity %s: %s", action, e)

    async def get_recent_activity(
        self,
        limit: int = 50,
        offset: int = 0,
        action_filter: Optional[str] = None,
        days: int = 30
    ) -> Tuple[List[dict], int]:
        """
        Get recent activity logs, newest first

        Returns:
            Tuple of (activity logs list, total count)
        """
        since = datetime.utcnow() - timedelta(days=days)

        where_clause = "created_at >= :since"
        params = {"since": since}

        if action_filter:
            where_clause += " AND action = :action"
            params["action"] = action_filter

        count_result = await self.database.fetch_one(
            f"SELECT COUNT(*) as count FROM activity_logs WHERE {where_clause}", params
        )
        total = count_result["count"] if count_result else 0

        logs = await self.database.fetch_all(
            f"""
            SELECT id, admin_id, action, resource_type, resource_id, details, ip_address, created_at
            FROM activity_logs
            WHERE {where_clause}
            ORDER BY created_at DESC
            LIMIT :limit OFFSET :offset
            """,
            {**params, "limit": limit, "offset": offset}
        )

        return [dict(log) for log in logs], total
