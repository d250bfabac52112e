"""命令行入口。

    chat-core serve            启动 Relay HTTP 服务（uvicorn）
    chat-core chat [--remote]  交互式对话
    chat-core list             列出已保存的会话
"""

from typing import Optional

import click

from chat_core.api import service
from chat_core.config.settings import settings
from chat_core.domain.conversation import Conversation
from chat_core.session.controller import SessionController

HELP_TEXT = "Commands: /new, /list, /switch ID, /delete ID, /rename TITLE, /help, /quit"


@click.group()
def cli() -> None:
    """Gemini chat relay and console client."""


@cli.command()
@click.option("--host", default=None, help="Bind address (defaults to settings.host).")
@click.option("--port", default=None, type=int, help="Bind port (defaults to settings.port).")
def serve(host: Optional[str], port: Optional[int]) -> None:
    """Run the /api/chat relay."""
    import uvicorn

    uvicorn.run("chat_core.api.app:app", host=host or settings.host, port=port or settings.port)


@cli.command(name="list")
def list_command() -> None:
    """List stored conversations, most recent first."""
    items = service.list_conversations()
    if not items:
        click.echo("No conversations.")
        return
    for item in items:
        click.echo(f"{item['id']}  {item['timestamp']}  ({item['message_count']})  {item['title']}")


@cli.command()
@click.option("--remote/--local", default=False, help="Talk to the HTTP relay instead of calling Gemini in-process.")
@click.option("--conversation", "conversation_id", default=None, help="Resume an existing conversation.")
def chat(remote: bool, conversation_id: Optional[str]) -> None:
    """Interactive chat session."""
    controller = service.build_controller(remote=remote)
    if conversation_id and not controller.select_conversation(conversation_id):
        raise click.ClickException(f"Unknown conversation: {conversation_id}")
    click.echo(HELP_TEXT)

    while True:
        try:
            line = click.prompt("you", prompt_suffix="> ", default="", show_default=False)
        except (EOFError, click.Abort):
            break
        if line.startswith("/"):
            if not run_command(controller, line):
                break
            continue
        before = _message_count(controller.active_conversation)
        if not controller.submit(line):
            continue
        conv = controller.active_conversation
        if conv is not None:
            for message in conv.messages[before + 1:]:
                click.echo(f"{message.role.value}> {message.content}")


def run_command(controller: SessionController, line: str) -> bool:
    """执行斜杠命令，返回 False 表示退出。"""
    name, _, arg = line.partition(" ")
    arg = arg.strip()
    if name in ("/quit", "/exit"):
        return False
    if name == "/new":
        conv = controller.new_chat()
        click.echo(f"Started {conv.id}")
    elif name == "/list":
        for conv in controller.conversations:
            marker = "*" if conv.id == controller.active_id else " "
            click.echo(f"{marker} {conv.id}  {conv.title}")
    elif name == "/switch" and arg:
        if controller.select_conversation(arg):
            _print_transcript(controller.active_conversation)
        else:
            click.echo(f"Unknown conversation: {arg}")
    elif name == "/delete" and arg:
        if not controller.delete_conversation(arg):
            click.echo(f"Unknown conversation: {arg}")
    elif name == "/rename" and arg and controller.active_id:
        controller.rename_conversation(controller.active_id, arg)
    else:
        click.echo(HELP_TEXT)
    return True


def _message_count(conv: Optional[Conversation]) -> int:
    return len(conv.messages) if conv is not None else 0


def _print_transcript(conv: Optional[Conversation]) -> None:
    if conv is None:
        return
    click.echo(f"# {conv.title}")
    for message in conv.messages:
        click.echo(f"{message.role.value}> {message.content}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
