from fastapi import Depends, Request

from billdesk.database import DocumentStore
from billdesk.sales.terminal import Terminal, TerminalRegistry


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_terminals(request: Request) -> TerminalRegistry:
    return request.app.state.terminals


async def get_terminal(
    terminal_id: str,
    terminals: TerminalRegistry = Depends(get_terminals),
) -> Terminal:
    terminal = terminals.get(terminal_id)
    await terminal.ensure_catalog()
    return terminal
