"""HTTP handler for the catalog read endpoint."""

import logging

from fastapi import status
from fastapi.responses import JSONResponse

from prompt_catalog.dto import ErrorResponse, PromptItem, PromptsResponse
from prompt_catalog.exceptions import ConfigurationError
from prompt_catalog.services import CatalogService

logger = logging.getLogger(__name__)

CONFIG_ERROR_MESSAGE = "服务配置错误，请联系管理员"
FETCH_ERROR_MESSAGE = "数据加载失败，请稍后重试"


class PromptsHandler:
    """HTTP handler for GET /api/prompts.

    The service already prefers stale data over failing, so an exception
    reaching this handler means there was no cached copy at all.
    """

    def __init__(self, catalog_service: CatalogService) -> None:
        """Initialize the prompts handler.

        Args:
            catalog_service: The catalog read service (required).
        """
        self._catalog = catalog_service

    async def get_prompts(self) -> PromptsResponse | JSONResponse:
        """Handle GET /api/prompts requests.

        Returns:
            PromptsResponse on success, or a 500 JSONResponse carrying ErrorResponse
        """
        try:
            result = await self._catalog.get_prompts()
        except Exception as e:
            logger.error("Failed to fetch prompts: %s", e)
            message = CONFIG_ERROR_MESSAGE if isinstance(e, ConfigurationError) else FETCH_ERROR_MESSAGE
            error = ErrorResponse(error="FETCH_ERROR", message=message)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=error.model_dump(by_alias=True),
            )

        return PromptsResponse(
            data=[PromptItem.model_validate(p) for p in result.prompts],
            total=len(result.prompts),
            categories=result.categories,
        )
