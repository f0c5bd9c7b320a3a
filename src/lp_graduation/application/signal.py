"""Post-trade hook: graduate the agent once a trade pushes its reserve over threshold."""

import logging

from src.lp_agent.domain.models import Agent
from src.lp_common.database import async_session_factory
from src.lp_common.errors import AlreadyGraduatedError, NotEligibleError
from src.lp_curve.domain.models import TradeEvaluation
from src.lp_graduation.application.manager import GraduationManager
from src.lp_recovery.application.recorder import SessionFactory
from src.lp_trading.domain.models import TradeRecord

logger = logging.getLogger(__name__)


class GraduationSignal:
    def __init__(
        self, manager: GraduationManager, session_factory: SessionFactory | None = None
    ) -> None:
        self._manager = manager
        self._session_factory = session_factory or async_session_factory

    async def __call__(
        self, agent: Agent, record: TradeRecord, evaluation: TradeEvaluation
    ) -> None:
        if not evaluation.can_graduate_after:
            return
        async with self._session_factory() as db:
            try:
                await self._manager.graduate(db, agent.id)
            except (AlreadyGraduatedError, NotEligibleError) as exc:
                # Another trade or the sweep got there first
                logger.info(
                    "Graduation signal for %s after %s ignored: %s",
                    agent.id, record.trade_id, exc.message,
                )
