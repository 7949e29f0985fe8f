from __future__ import annotations

from ..runtime.models import AgentCard
from .console_ui import Console


def _flag(value: bool) -> str:
    return "yes" if value else "no"


def print_agent_card(console: Console, card: AgentCard) -> None:
    c = console
    c.ensure_newline()
    header = f"{card.name} v{card.version}" if card.version else card.name
    c.println(c.color(header, "1;34"))
    c.println(c.color(card.url, "4;32"))
    if card.provider is not None and (card.provider.organization or card.provider.url):
        org = " ".join(x for x in (card.provider.organization, card.provider.url) if x)
        c.println_dim(f"  Provider: {org}")
    if card.description:
        c.println(f"  {card.description}")
    if card.documentation_url:
        c.println_dim(f"  Docs: {card.documentation_url}")

    auth = card.authentication
    if auth is None:
        c.println("  Authentication: none")
    else:
        schemes = ", ".join(auth.schemes) if auth.schemes else "none"
        c.println(f"  Authentication: {schemes}")
        if auth.credentials:
            c.println_dim(f"    Credentials: {auth.credentials}")

    caps = card.capabilities
    c.println(f"  Streaming: {_flag(caps.streaming)}")
    c.println(f"  Push notifications: {_flag(caps.push_notifications)}")
    c.println(f"  State transition history: {_flag(caps.state_transition_history)}")

    if not card.skills:
        c.println("  Skills: none")
        return
    c.println("  Skills:")
    for skill in sorted(card.skills, key=lambda s: s.name):
        suffix = f" - {skill.description}" if skill.description else ""
        c.println(f"    • {skill.name}{suffix}")
