"""Post-trade hook: push creator and platform fee shares to the payout service.

A failed payout is recorded for the retry sweep; the trade is already
committed and stays valid.
"""

import logging

from config.settings import settings
from src.lp_agent.domain.models import Agent
from src.lp_common.enums import FailureType
from src.lp_common.errors import DownstreamFailureError
from src.lp_curve.domain.models import TradeEvaluation
from src.lp_recovery.application.recorder import FailureRecorder
from src.lp_recovery.infrastructure.payout_client import PayoutClient
from src.lp_trading.domain.models import TradeRecord

logger = logging.getLogger(__name__)


class FeePayoutHook:
    def __init__(
        self,
        client: PayoutClient,
        recorder: FailureRecorder | None = None,
        platform_recipient: str | None = None,
    ) -> None:
        self._client = client
        self._recorder = recorder or FailureRecorder()
        self._platform_recipient = platform_recipient or settings.PLATFORM_FEE_RECIPIENT

    async def __call__(
        self, agent: Agent, record: TradeRecord, evaluation: TradeEvaluation
    ) -> None:
        payouts = (
            (FailureType.CREATOR_PAYOUT, agent.creator_id, record.creator_fee),
            (FailureType.PLATFORM_PAYOUT, self._platform_recipient, record.platform_fee),
        )
        for payout_type, recipient_id, amount in payouts:
            if amount <= 0:
                continue
            try:
                await self._client.send(recipient_id, amount, record.trade_id, payout_type.value)
            except DownstreamFailureError as exc:
                await self._recorder.record(
                    agent_id=agent.id,
                    failure_type=payout_type.value,
                    reason=exc.message,
                    reference_id=record.trade_id,
                    recipient_id=recipient_id,
                    amount=amount,
                )
