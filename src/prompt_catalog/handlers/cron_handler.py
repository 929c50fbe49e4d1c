"""HTTP handler for the scheduled sync endpoint."""

import hmac
import logging

from fastapi import status
from fastapi.responses import JSONResponse

from prompt_catalog.dto import CronSyncResponse
from prompt_catalog.services import SyncService

logger = logging.getLogger(__name__)


class CronHandler:
    """HTTP handler for GET /api/cron/sync, called hourly by the scheduler."""

    def __init__(self, sync_service: SyncService, cron_secret: str = "") -> None:
        """Initialize the cron handler.

        Args:
            sync_service: The sync service (required).
            cron_secret: If set, requests must send ``Authorization: Bearer <secret>``.
        """
        self._sync = sync_service
        self._cron_secret = cron_secret

    def is_authorized(self, authorization: str | None) -> bool:
        if not self._cron_secret:
            return True
        return hmac.compare_digest(authorization or "", f"Bearer {self._cron_secret}")

    async def run(self, authorization: str | None) -> JSONResponse:
        """Handle a scheduled sync request.

        Args:
            authorization: Value of the Authorization header, if any

        Returns:
            200 when skipped or synced, 401 on auth mismatch, 500 on sync failure
        """
        if not self.is_authorized(authorization):
            logger.error("Unauthorized cron request")
            return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"error": "Unauthorized"})

        if not await self._sync.is_stale():
            logger.info("Cache is still fresh, skipping sync")
            return self._respond(
                status.HTTP_200_OK,
                CronSyncResponse(success=True, message="Cache is fresh, sync skipped", synced=False),
            )

        logger.info("Cache is stale, starting sync...")
        result = await self._sync.sync()

        if result.success:
            logger.info("Cron sync completed: %d prompts", result.prompt_count)
            return self._respond(
                status.HTTP_200_OK,
                CronSyncResponse(
                    success=True,
                    message="Sync completed successfully",
                    synced=True,
                    prompt_count=result.prompt_count,
                    category_count=result.category_count,
                    sync_time=result.sync_time,
                ),
            )

        logger.error("Cron sync failed: %s", result.error)
        return self._respond(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            CronSyncResponse(
                success=False,
                message="Sync failed",
                synced=True,
                sync_time=result.sync_time,
                error=result.error,
            ),
        )

    @staticmethod
    def _respond(status_code: int, body: CronSyncResponse) -> JSONResponse:
        return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True, exclude_none=True))
