"""Conversational agent: intent routing, grounded handlers and thread context."""

from .orchestrator import DinverAgent, build_agent
from .types import AgentReply, ChatInput

__all__ = ["AgentReply", "ChatInput", "DinverAgent", "build_agent"]
