"""
cli.main - 终端入口。

Commands
--------
  start      开启新会话并打印标题与回复
  continue   在已有会话中继续提问
  describe   打印会话的全部消息
  list       列出所有会话（最近更新的在前）
"""

from __future__ import annotations

from typing import NoReturn

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from chat_core.api.service import ChatService, create_default_service
from chat_core.config.settings import settings
from chat_core.domain.context import RequestContext
from chat_core.domain.exceptions import BusinessError

console = Console()
app = typer.Typer(
    help="Conversational assistant CLI",
    add_completion=False,
    no_args_is_help=True,
)


def _service() -> ChatService:
    try:
        return create_default_service(settings)
    except BusinessError as e:
        _fail(e)


def _context() -> RequestContext:
    return RequestContext.with_timeout(settings.request_timeout)


def _fail(e: BusinessError) -> NoReturn:
    console.print(f"[bold red]{e.code}:[/bold red] {escape(e.message)}")
    raise typer.Exit(code=1)


@app.command()
def start(message: str = typer.Argument(..., help="First user message")) -> None:
    """Start a new conversation."""
    service = _service()
    try:
        with console.status("[bold cyan]Thinking…", spinner="dots"):
            result = service.start_conversation(message, _context())
    except BusinessError as e:
        _fail(e)
    console.print(Panel(Text(result.reply), title=escape(result.title), subtitle=result.conversation_id, box=box.ROUNDED))


@app.command("continue")
def continue_(
    conversation_id: str = typer.Argument(..., help="Conversation id"),
    message: str = typer.Argument(..., help="Next user message"),
) -> None:
    """Continue an existing conversation."""
    service = _service()
    try:
        with console.status("[bold cyan]Thinking…", spinner="dots"):
            result = service.continue_conversation(conversation_id, message, _context())
    except BusinessError as e:
        _fail(e)
    console.print(Panel(Text(result.reply), subtitle=conversation_id, box=box.ROUNDED))


@app.command()
def describe(conversation_id: str = typer.Argument(..., help="Conversation id")) -> None:
    """Show every message of a conversation."""
    service = _service()
    try:
        conv = service.describe_conversation(conversation_id)
    except BusinessError as e:
        _fail(e)
    console.print(f"[bold]{escape(conv.title)}[/bold]  [dim]{conv.id}[/dim]")
    for m in conv.messages:
        style = "cyan" if m.role == "user" else "green"
        console.print(f"[{style}]{m.role}[/{style}] [dim]{m.created_at:%Y-%m-%d %H:%M}[/dim]")
        console.print(m.content, markup=False)


@app.command("list")
def list_() -> None:
    """List conversations, most recently updated first."""
    service = _service()
    try:
        conversations = service.list_conversations()
    except BusinessError as e:
        _fail(e)
    if not conversations:
        console.print("[dim]No conversations yet.[/dim]")
        return
    table = Table(box=box.SIMPLE)
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Updated")
    for c in conversations:
        table.add_row(c.id, escape(c.title), f"{c.updated_at:%Y-%m-%d %H:%M}")
    console.print(table)


if __name__ == "__main__":
    app()
