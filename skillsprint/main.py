"""
Main application entry point
"""

from typing import Optional

from skillsprint.api.supabase_client import SupabaseClient
from skillsprint.models.session import Session
from skillsprint.services.category_manager import CategoryManager
from skillsprint.services.mutation_gateway import MutationGateway, translate_error
from skillsprint.services.project_manager import ProjectManager
from skillsprint.services.review_manager import ReviewManager
from skillsprint.services.skill_manager import SkillManager
from skillsprint.services.task_manager import TaskManager
from skillsprint.utils.error_handler import PersistenceError
from skillsprint.utils.logger import logger
from skillsprint.config.settings import settings


class SkillSprint:
    """Application workspace: one authenticated session and its services"""

    def __init__(self, client: Optional[SupabaseClient] = None):
        """
        Initialize application

        Args:
            client: Backing store client (built from settings when omitted)
        """
        self.client = client or SupabaseClient()
        self.session: Optional[Session] = None
        self.gateway: Optional[MutationGateway] = None
        self.categories: Optional[CategoryManager] = None
        self.tasks: Optional[TaskManager] = None
        self.projects: Optional[ProjectManager] = None
        self.skills: Optional[SkillManager] = None
        self.reviews: Optional[ReviewManager] = None
        self.logger = logger

    @property
    def started(self) -> bool:
        return self.session is not None

    def attach_session(self, session: Session):
        """Build the services for an authenticated session"""
        self.session = session
        self.gateway = MutationGateway(self.client, session)
        self.categories = CategoryManager(self.gateway)
        self.tasks = TaskManager(self.gateway, self.categories)
        self.projects = ProjectManager(self.gateway, self.tasks)
        self.skills = SkillManager(self.gateway)
        self.reviews = ReviewManager(self.gateway)

    async def start(self):
        """
        Validate settings and authenticate

        Raises:
            ValueError: If required settings are missing
            PersistenceError: If the session cannot be established
        """
        settings.validate()

        self.logger.info("[SkillSprint] Authenticating with the backing store...")
        try:
            session = await self.client.get_session()
        except Exception as e:
            error = translate_error(e, "authenticate")
            raise PersistenceError(error.message, operation="authenticate") from e

        self.attach_session(session)
        self.logger.info(f"[SkillSprint] Started for user {session.user_id}")

    async def stop(self):
        """Close the backing store client"""
        self.logger.info("[SkillSprint] Stopping...")
        await self.client.close()
        self.logger.info("[SkillSprint] Stopped")


def main():
    """Run the web API with uvicorn"""
    import uvicorn
    from skillsprint.web.main import app

    logger.info(f"Starting SkillSprint API on port {settings.WEB_PORT}")
    uvicorn.run(app, host="0.0.0.0", port=settings.WEB_PORT)


if __name__ == "__main__":
    main()
