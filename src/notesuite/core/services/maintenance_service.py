"""On-demand cleanup of tokens, shares and public links."""

from sqlalchemy.ext.asyncio import AsyncSession

from ...database import unit_of_work
from ..logging import get_logger
from ..schemas.maintenance import MaintenanceReport, TokenCleanupResponse
from .public_link_service import PublicLinkService
from .sharing_service import SharingService
from .token_ledger import TokenLedger

logger = get_logger("services.maintenance")


class MaintenanceService:
    """Runs every cleanup job once. There is no scheduler; callers decide when."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.ledger = TokenLedger(session)
        self.sharing = SharingService(session)
        self.links = PublicLinkService(session)

    async def run_cleanup(self) -> MaintenanceReport:
        async with unit_of_work(self.session):
            tokens = await self.ledger.cleanup()
        shares = await self.sharing.cleanup_expired()
        links = await self.links.cleanup_expired()

        report = MaintenanceReport(
            refresh_tokens=TokenCleanupResponse(
                expired=tokens.expired,
                revoked=tokens.revoked,
                aged_out=tokens.aged_out,
                total=tokens.total,
            ),
            shares_deactivated=shares,
            public_links_deleted=links,
        )
        logger.info("Maintenance cleanup finished", extra=report.model_dump())
        return report
