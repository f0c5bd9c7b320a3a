"""Pydantic schemas for lp_agent API requests and responses."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.lp_agent.domain.models import Agent
from src.lp_curve.domain.models import CurveConfig, MarketData


class CurveConfigIn(BaseModel):
    p0: float = Field(..., gt=0)
    p1: float = Field(..., gt=0)
    tradeable_cap: float = Field(..., gt=0)
    graduation_threshold: float = Field(..., gt=0)
    trading_fee_bps: int = Field(..., ge=0, lt=10_000)
    creator_fee_share_bps: int = Field(..., ge=0, le=10_000)
    platform_fee_share_bps: int = Field(..., ge=0, le=10_000)
    lp_fee_share_bps: int = Field(0, ge=0, le=10_000)
    total_supply: float | None = Field(None, gt=0)

    def to_domain(self) -> CurveConfig:
        return CurveConfig(**self.model_dump())


class CreateAgentRequest(BaseModel):
    """Either a named ``preset`` or an explicit ``curve``; the default preset applies when neither is given."""

    name: str = Field(..., min_length=1, max_length=128)
    symbol: str = Field(..., min_length=1, max_length=16)
    preset: str | None = None
    curve: CurveConfigIn | None = None
    usd_rate: float | None = Field(None, gt=0)


class CurveConfigOut(BaseModel):
    p0: float
    p1: float
    tradeable_cap: float
    graduation_threshold: float
    trading_fee_bps: int
    creator_fee_share_bps: int
    platform_fee_share_bps: int
    lp_fee_share_bps: int
    total_supply: float | None


class AgentResponse(BaseModel):
    id: str
    name: str
    symbol: str
    creator_id: str
    status: str
    phase: str
    shares_sold: float
    reserve_raised: float
    curve: CurveConfigOut
    failure_reason: str | None
    activated_at: datetime | None
    graduated_at: datetime | None
    created_at: datetime | None

    @classmethod
    def from_domain(cls, agent: Agent) -> "AgentResponse":
        c = agent.config
        return cls(
            id=agent.id,
            name=agent.name,
            symbol=agent.symbol,
            creator_id=agent.creator_id,
            status=agent.status,
            phase=agent.state.phase,
            shares_sold=agent.state.shares_sold,
            reserve_raised=agent.state.reserve_raised,
            curve=CurveConfigOut(
                p0=c.p0,
                p1=c.p1,
                tradeable_cap=c.tradeable_cap,
                graduation_threshold=c.graduation_threshold,
                trading_fee_bps=c.trading_fee_bps,
                creator_fee_share_bps=c.creator_fee_share_bps,
                platform_fee_share_bps=c.platform_fee_share_bps,
                lp_fee_share_bps=c.lp_fee_share_bps,
                total_supply=c.total_supply,
            ),
            failure_reason=agent.failure_reason,
            activated_at=agent.activated_at,
            graduated_at=agent.graduated_at,
            created_at=agent.created_at,
        )


class MarketDataResponse(BaseModel):
    agent_id: str
    current_price: float
    market_cap: float
    fdv: float
    shares_sold: float
    shares_remaining: float
    percent_sold: float
    reserve_raised: float
    graduation_threshold: float
    graduation_progress: float
    phase: str

    @classmethod
    def from_domain(cls, agent_id: str, data: MarketData) -> "MarketDataResponse":
        return cls(
            agent_id=agent_id,
            current_price=data.current_price,
            market_cap=data.market_cap,
            fdv=data.fdv,
            shares_sold=data.shares_sold,
            shares_remaining=data.shares_remaining,
            percent_sold=data.percent_sold,
            reserve_raised=data.reserve_raised,
            graduation_threshold=data.graduation_threshold,
            graduation_progress=data.graduation_progress,
            phase=data.phase,
        )
