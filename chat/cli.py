"""chat CLI: Typer + Rich terminal interface.

Sends one prompt to a chat-completions endpoint and prints the reply,
either all at once or streamed fragment by fragment.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from chat import __version__
from chat.exceptions import ChatError, ConfigurationError
from chat.keys import load_keys_env, require_api_key
from chat.providers.base import ChatProvider
from chat.providers.openai_provider import OpenAIProvider
from chat.providers.registry import load_client_config
from chat.schemas.config import ClientConfig
from chat.schemas.streaming import StreamOutcome
from chat.streaming.stream import consume

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="chat",
    help="Send a prompt to a chat-completions API and print the reply.",
    add_completion=False,
    rich_markup_mode="rich",
)


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"chat {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=verbose)],
        force=True,
    )


def _fail(message: str) -> NoReturn:
    """Print a one-line error and exit non-zero."""
    console.print(f"[red]chat:[/red] {escape(message)}", soft_wrap=True)
    raise typer.Exit(1)


def _load_config(config_path: Path | None, model: str | None) -> ClientConfig:
    """Load client config, exit on error."""
    try:
        config = load_client_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        _fail(f"error loading config: {e}")
    if model:
        config = config.model_copy(update={"model": model})
    return config


def _build_provider(config: ClientConfig, api_key: str) -> ChatProvider:
    return OpenAIProvider(config, api_key)


def _stream_chat(provider: ChatProvider, prompt: str) -> None:
    try:
        stream = provider.chat_stream(prompt)
    except ChatError as e:
        _fail(f"something went wrong: {e}")

    wrote_text = False

    def write(text: str) -> None:
        nonlocal wrote_text
        wrote_text = True
        console.out(text, end="", highlight=False)

    with stream:
        try:
            outcome = consume(stream, write)
        except KeyboardInterrupt:
            raise typer.Exit(130) from None

    if outcome is StreamOutcome.ERROR:
        if wrote_text:
            console.out("")
        _fail(f"stream interrupted: {stream.err}")


def _sync_chat(provider: ChatProvider, prompt: str) -> None:
    try:
        reply = provider.chat_sync(prompt)
    except ChatError as e:
        _fail(f"something went wrong: {e}")
    console.out(reply, highlight=False)


# ── chat ─────────────────────────────────────────────────────────


@app.command()
def main(
    prompt: str = typer.Argument("", help="Prompt to send."),
    stream: bool = typer.Option(
        False, "--stream", "-s",
        help="Stream the response to stdout.",
    ),
    model: str = typer.Option(
        None, "--model", "-m",
        help="Model to use (overrides the config file).",
    ),
    config_path: Path = typer.Option(
        None, "--config", "-c",
        help="Path to a TOML file with a [client] table.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log transport and decoding details to stderr.",
    ),
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Send PROMPT and print the model's reply."""
    _configure_logging(verbose)
    load_keys_env()

    config = _load_config(config_path, model)
    try:
        api_key = require_api_key(config.api_key_env)
    except ConfigurationError as e:
        _fail(str(e))

    provider = _build_provider(config, api_key)
    if stream:
        _stream_chat(provider, prompt)
    else:
        _sync_chat(provider, prompt)


if __name__ == "__main__":
    app()
