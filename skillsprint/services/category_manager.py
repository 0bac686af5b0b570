"""
Category management service
"""

from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from skillsprint.config.constants import TABLE_CATEGORIES, TABLE_TASKS
from skillsprint.models.category import Category, CategoryCreate
from skillsprint.models.response import MutationResponse
from skillsprint.services.mutation_gateway import MutationGateway
from skillsprint.services.task_store import TaskStore
from skillsprint.utils.error_handler import from_pydantic
from skillsprint.utils.formatters import format_created, format_deleted
from skillsprint.utils.logger import logger


class CategoryManager:
    """Service for managing task categories"""

    def __init__(self, gateway: MutationGateway):
        """
        Initialize category manager

        Args:
            gateway: Mutation gateway
        """
        self.gateway = gateway
        self.logger = logger
        self._categories: Optional[Dict[str, Category]] = None

    async def list_categories(self, force_refresh: bool = False) -> List[Category]:
        """
        Get the user's categories ordered by name

        Args:
            force_refresh: Reload even if already loaded

        Returns:
            List of categories
        """
        if self._categories is None or force_refresh:
            rows = await self.gateway.select(TABLE_CATEGORIES, order=[("name", True)])
            categories = [Category.model_validate(row) for row in rows]
            self._categories = {category.id: category for category in categories}
            self.logger.debug(f"[CategoryManager] Loaded {len(categories)} categories")
        return list(self._categories.values())

    async def index(self) -> Dict[str, Category]:
        """Map category ID to category"""
        await self.list_categories()
        return dict(self._categories or {})

    async def create_category(self, name: str, color: Optional[str] = None) -> MutationResponse:
        """
        Create a category

        Args:
            name: Category name (required)
            color: Hex color, palette default when omitted

        Returns:
            MutationResponse with the created category in data

        Raises:
            ValidationError: If the name is empty
        """
        try:
            draft = CategoryCreate(name=name, **({"color": color} if color else {}))
        except PydanticValidationError as e:
            raise from_pydantic(e, operation="create category") from e

        stored = await self.gateway.create(TABLE_CATEGORIES, draft.model_dump(), entity=draft.name)
        category = Category.model_validate(stored)
        if self._categories is not None:
            self._categories[category.id] = category
            self._categories = dict(sorted(self._categories.items(), key=lambda item: item[1].name.casefold()))

        self.logger.info(f"[CategoryManager] Created category '{category.name}'")
        return MutationResponse(
            message=format_created("category", category.name),
            data=category.model_dump(mode="json"),
        )

    async def delete_category(
        self,
        category_id: str,
        stores: Iterable[TaskStore] = (),
    ) -> MutationResponse:
        """
        Delete a category, clearing it from every task that references it

        Args:
            category_id: Category ID
            stores: Loaded task stores whose snapshots should drop the reference

        Returns:
            MutationResponse
        """
        stores = list(stores)
        category = (await self.index()).get(category_id)
        name = category.name if category else category_id

        await self.gateway.update_where(TABLE_TASKS, {"category_id": category_id}, {"category_id": None})
        await self.gateway.delete(TABLE_CATEGORIES, category_id, entity=name)

        if self._categories is not None:
            self._categories.pop(category_id, None)
        cleared = sum(store.clear_category(category_id) for store in stores)
        # Category sort depends on names, so cached projections are stale
        for store in stores:
            store.projections.clear_cache()

        self.logger.info(f"[CategoryManager] Deleted category '{name}' ({cleared} cached tasks cleared)")
        return MutationResponse(message=format_deleted("category", name))
