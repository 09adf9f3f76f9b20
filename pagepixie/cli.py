#!/usr/bin/env python3
"""
PagePixie CLI - Capture a page from extractor output and refine it by chat
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskID, TextColumn
from rich.table import Table

from . import __version__
from .ai.orchestrator import CaptureCallbacks, CaptureStage
from .core.config import PagePixieConfig
from .exceptions import PagePixieError
from .models.page import CaptureResult, PageContent
from .pagepixie import PagePixie
from .providers.factory import get_available_providers
from .utils.structured_data import stringify_structured_value

STAGE_LABELS = {
    CaptureStage.LANGUAGE_NORMALIZE: "Checking language",
    CaptureStage.CLASSIFY: "Classifying content",
    CaptureStage.CONDENSE: "Condensing content",
    CaptureStage.RESET_FOR_SUMMARIZE: "Preparing summary session",
    CaptureStage.ATTACH_IMAGE_CONTEXT: "Attaching images",
    CaptureStage.SUMMARIZE: "Summarizing",
}


class PagePixieCLI:
    """Command-line interface for PagePixie page capture"""

    def __init__(self, args: argparse.Namespace):
        self.args = args
        self.console = Console()
        self.pagepixie: Optional[PagePixie] = None

    def initialize_pagepixie(self) -> bool:
        """Initialize PagePixie from environment config and CLI overrides"""
        try:
            overrides = {}
            if self.args.provider:
                overrides["provider"] = self.args.provider
            if self.args.model:
                overrides["model"] = self.args.model

            config = PagePixieConfig.from_env(**overrides)

            config.validate_provider_config()
            self.pagepixie = PagePixie(config=config)
            self.console.print(f"[green]✓[/green] PagePixie initialized with {config.provider} ({config.model})")
            return True

        except (ValueError, PagePixieError) as e:
            self.console.print(f"[red]✗ Failed to initialize PagePixie:[/red] {e}")
            return False

    def load_page(self, path: Path) -> Optional[PageContent]:
        """Load extractor output from a JSON file"""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.console.print(f"[red]✗ Could not read {path}:[/red] {e}")
            return None

        if not isinstance(data, dict):
            self.console.print(f"[red]✗ {path} does not contain a page object[/red]")
            return None

        return PageContent.from_dict(data)

    async def capture(self, page: PageContent) -> Optional[CaptureResult]:
        """Run the capture pipeline with live progress output"""
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total}"),
            console=self.console,
            transient=True,
        ) as progress:
            stage_task = progress.add_task("Starting", total=len(STAGE_LABELS))
            detail_task: Dict[str, TaskID] = {}

            def on_stage(stage: CaptureStage) -> None:
                if stage in STAGE_LABELS:
                    progress.update(stage_task, description=STAGE_LABELS[stage], advance=1)

            def track(name: str):
                def on_progress(current: int, total: int) -> None:
                    if name not in detail_task:
                        detail_task[name] = progress.add_task(f"  {name}", total=total)
                    progress.update(detail_task[name], completed=current, total=total)
                return on_progress

            callbacks = CaptureCallbacks(
                on_stage=on_stage,
                on_condense_progress=track("condense"),
                on_summarize_progress=track("summarize"),
                on_translation_start=lambda language: self.console.print(
                    f"[cyan]Translating from {language}...[/cyan]"
                ),
                on_translation_error=lambda e: self.console.print(
                    f"[yellow]Translation skipped: {e}[/yellow]"
                ),
            )

            try:
                return await self.pagepixie.capture(page, callbacks)
            except PagePixieError as e:
                self.console.print(f"[red]✗ Capture failed:[/red] {e}")
                return None

    def display_result(self, summary: str, structured_data: Dict[str, Any], title: str = "") -> None:
        self.console.print(Panel(Markdown(summary or "_No summary_"), title=title or "Summary", border_style="cyan"))

        if structured_data:
            table = Table(title="Structured data", show_lines=False)
            table.add_column("Field", style="bold")
            table.add_column("Value")
            for key, value in structured_data.items():
                table.add_row(key, stringify_structured_value(value))
            self.console.print(table)

    async def chat_loop(self, url: str, result: CaptureResult) -> None:
        """Refine the stored capture interactively"""
        summary, structured_data = result.summary, result.structured_data
        self.console.print("\nChat with the capture to refine it. Commands: /exit")

        while True:
            try:
                message = self.console.input("\n[bold]You:[/bold] ").strip()
            except (KeyboardInterrupt, EOFError):
                self.console.print("\nGoodbye!")
                break

            if not message:
                continue
            if message.lower() == "/exit":
                self.console.print("Goodbye!")
                break

            with self.console.status("Thinking..."):
                response = await self.pagepixie.chat(url, message)

            self.console.print(f"\n[bold magenta]Assistant:[/bold magenta] {response.ai_response}")
            if response.summary != summary or response.structured_data != structured_data:
                summary, structured_data = response.summary, response.structured_data
                self.display_result(summary, structured_data, title="Updated summary")

    async def run_async(self) -> int:
        page = self.load_page(Path(self.args.page))
        if page is None:
            return 1

        if not self.initialize_pagepixie():
            return 1

        async with self.pagepixie:
            with self.console.status("Waiting for model service..."):
                ready = await self.pagepixie.wait_until_ready()
            if not ready:
                self.console.print("[red]✗ Model service is not available[/red]")
                return 1

            result = await self.capture(page)
            if result is None:
                return 1

            self.display_result(result.summary, result.structured_data, title=page.title)
            for diagnostic in result.diagnostics:
                self.console.print(f"[yellow]⚠ {diagnostic}[/yellow]")

            if self.args.chat:
                if not page.url:
                    self.console.print("[yellow]Chat needs a page URL to store the capture[/yellow]")
                else:
                    await self.chat_loop(page.url, result)

        return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pagepixie", description="Summarize extracted web pages")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="Logging level (default from config)")

    subparsers = parser.add_subparsers(dest="command", required=True)
    capture = subparsers.add_parser("capture", help="Capture a page from extractor JSON output")
    capture.add_argument("page", help="Path to a PageContent JSON document")
    capture.add_argument("--chat", action="store_true", help="Refine the capture interactively")
    capture.add_argument("--provider", choices=get_available_providers(), help="Model provider")
    capture.add_argument("--model", help="Model name")
    return parser


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def main(argv=None):
    """Main entry point"""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level or os.getenv("PAGEPIXIE_LOG_LEVEL", PagePixieConfig.log_level))

    cli = PagePixieCLI(args)
    try:
        sys.exit(asyncio.run(cli.run_async()))
    except KeyboardInterrupt:
        cli.console.print("\nInterrupted. Goodbye!")
        sys.exit(130)


if __name__ == "__main__":
    main()
