from .agent_card import AgentAuthentication, AgentCapabilities, AgentCard, AgentProvider, AgentSkill

__all__ = [
    "AgentAuthentication",
    "AgentCapabilities",
    "AgentCard",
    "AgentProvider",
    "AgentSkill",
]
