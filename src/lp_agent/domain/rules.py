"""Tradeability rule shared by quotes and execution."""

from src.lp_agent.domain.models import Agent
from src.lp_common.enums import AgentStatus, CurvePhase
from src.lp_common.errors import AgentGraduatedError, AgentNotActiveError


def ensure_tradeable(agent: Agent) -> None:
    """Raise unless the agent is LIVE and its curve is still active."""
    if agent.status != AgentStatus.LIVE:
        raise AgentNotActiveError(agent.id, agent.status)
    if agent.state.phase != CurvePhase.ACTIVE:
        raise AgentGraduatedError(agent.id, agent.state.phase)
