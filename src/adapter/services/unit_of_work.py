from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.access_log_repository import AccessLogRepository
from src.adapter.repositories.invitation_repository import InvitationRepository
from src.adapter.repositories.store_errors import store_errors
from src.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        # Initialize all repositories with the session
        self.invitations = InvitationRepository(self.session)
        self.access_logs = AccessLogRepository(self.session)
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        with store_errors("commit"):
            await self.session.commit()

    async def rollback(self):
        with store_errors("rollback"):
            await self.session.rollback()
