"""CLI entry point: InkFlow novel generation toolkit.

Usage:
  inkflow ideas -f "system, rebirth"      Generate daily story ideas
  inkflow chapter -t "Chapter 1" ...      Write a chapter from an outline
  inkflow map world -i "idea"             Regenerate a story map
  inkflow polish "text" -m rewrite        Continue, rewrite or polish text
  inkflow task status <id>                Inspect a backend task
  inkflow health                          Check the configured models
"""

import asyncio
import logging
import os
import sys
from pathlib import Path

# Ensure UTF-8 output on Windows to avoid encoding errors with Rich
if sys.platform == "win32":
    os.environ.setdefault("PYTHONIOENCODING", "utf-8")

import click

from cli.theme import (
    app_header,
    command_panel,
    error_panel,
    get_console,
    health_table,
    idea_cards,
    outline_tree,
    success_panel,
    task_panel,
)
from config.exceptions import InkflowError
from config.logging_config import setup_logging
from config.settings import Settings
from models.enums import TextMode
from models.outline import OutlineNode
from tools.backend_client import BackendClient
from tools.model_health import check_model_health
from tools.model_invoker import ModelInvoker
from workflow.callbacks import RichProgressCallback
from workflow.router import GenerationRouter

console = get_console()
logger = logging.getLogger(__name__)


def _init_logging(settings: Settings, verbose: bool):
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    setup_logging(level=level, log_dir=settings.log_dir, console_enabled=verbose)


def _run_generation(settings: Settings, description: str, operation):
    """Run ``operation(router)`` under a progress bar; exit 1 on failure.

    Returns the operation result and the usage metrics of the local call
    (None when the backend served the request).
    """
    cb = RichProgressCallback(console=console, description=description)

    async def _run():
        async with GenerationRouter(settings=settings, callback=cb) as router:
            return await operation(router)

    try:
        with cb:
            result = asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("\n[warning]Interrupted[/]")
        sys.exit(130)
    except InkflowError as e:
        console.print(error_panel(str(e)))
        logger.debug("Generation failed: %r", e.details)
        sys.exit(1)
    return result, cb.last_metrics


def _print_usage(metrics) -> None:
    if metrics is None:
        return
    console.print(
        f"\n[muted]Usage: {metrics.model} | in {metrics.input_tokens:,} / "
        f"out {metrics.output_tokens:,} tokens | {metrics.latency_ms}ms[/]"
    )


def _write_output(text: str, output: str | None) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
        console.print(f"[success]Saved to {output}[/]")
    else:
        console.print(text)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--local", "local_only", is_flag=True, help="Skip the backend and call the model directly")
@click.pass_context
def cli(ctx, verbose, local_only):
    """InkFlow: AI-assisted web novel generation.

    \b
    Operations are sent to the backend task queue first and fall back to a
    direct model call when the backend is unavailable.
    """
    settings = Settings(use_backend=False) if local_only else Settings()
    _init_logging(settings, verbose)
    ctx.obj = settings


# ---------------------------------------------------------------------------
# ideas command
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--focus", "-f", default="", help="Trend focus, e.g. 'system, rebirth'")
@click.option("--audience", "-a", default="male", type=click.Choice(["male", "female"]), help="Target audience")
@click.option("--source", "-s", "sources", multiple=True, help="Trend source platform (repeatable)")
@click.option("--lang", "-l", default=None, help="Output language code (default from settings)")
@click.pass_obj
def ideas(settings, focus, audience, sources, lang):
    """Generate a batch of daily story ideas.

    Examples:
      inkflow ideas -f "rebirth, revenge" -a female
      inkflow --local ideas -s qidian -s fanqie
    """
    console.print(app_header())
    console.print(command_panel("Daily story ideas", {
        "Focus": focus or "current hot spots",
        "Audience": audience,
        "Sources": ", ".join(sources) or "all",
    }))

    result, metrics = _run_generation(
        settings,
        "Generating ideas",
        lambda router: router.generate_daily_stories(
            focus, target_audience=audience, sources=sources, lang=lang
        ),
    )

    if not result:
        console.print("[warning]No ideas were returned[/]")
        return
    console.print(idea_cards(result))
    _print_usage(metrics)


# ---------------------------------------------------------------------------
# chapter command
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--title", "-t", required=True, help="Chapter title")
@click.option("--outline", "-o", "outline_text", default="", help="Chapter outline / summary")
@click.option("--words", "-w", default=2000, type=click.IntRange(min=100), help="Target word count")
@click.option("--context-file", "-c", type=click.Path(exists=True, dir_okay=False), help="World / story context file")
@click.option("--previous-file", "-p", type=click.Path(exists=True, dir_okay=False), help="Previous chapter text")
@click.option("--style", default=None, help="Style requirements")
@click.option("--lang", "-l", default=None, help="Output language code")
@click.option("--output", type=click.Path(dir_okay=False), default=None, help="Write the chapter to a file")
@click.pass_obj
def chapter(settings, title, outline_text, words, context_file, previous_file, style, lang, output):
    """Write one chapter from its outline.

    Examples:
      inkflow chapter -t "The Awakening" -o "Hero finds the ring" -w 3000
      inkflow chapter -t "Ch 2" -c world.md -p ch1.txt --output ch2.txt
    """
    context = Path(context_file).read_text(encoding="utf-8") if context_file else ""
    previous = Path(previous_file).read_text(encoding="utf-8") if previous_file else None
    node = OutlineNode(name=title, description=outline_text)

    console.print(app_header())
    console.print(command_panel("Write chapter", {
        "Title": title,
        "Words": str(words),
        "Context": f"{len(context):,} chars" if context else "none",
    }))

    text, metrics = _run_generation(
        settings,
        "Writing chapter",
        lambda router: router.generate_chapter_content(
            node, context, word_count=words, style=style, previous_content=previous, lang=lang
        ),
    )

    _write_output(text, output)
    console.print(success_panel("Chapter complete", f"  [stat.value]{len(text):,}[/] characters"))
    _print_usage(metrics)


# ---------------------------------------------------------------------------
# map command
# ---------------------------------------------------------------------------

@cli.command(name="map")
@click.argument("map_type")
@click.option("--idea", "-i", default="", help="Story idea or improvement request")
@click.option("--context-file", "-c", type=click.Path(exists=True, dir_okay=False), help="Story context file")
@click.option("--require", "-r", "requirements", default=None, help="Mandatory requirements")
@click.option("--lang", "-l", default=None, help="Output language code")
@click.pass_obj
def map_cmd(settings, map_type, idea, context_file, requirements, lang):
    """Regenerate a story map (world, character, plot...) as an outline tree.

    Examples:
      inkflow map world -i "a drowned empire"
      inkflow map character -c story.md -r "keep the villain"
    """
    context = Path(context_file).read_text(encoding="utf-8") if context_file else ""
    root, metrics = _run_generation(
        settings,
        f"Redrawing {map_type} map",
        lambda router: router.regenerate_map(
            map_type, idea, context, requirements=requirements, lang=lang
        ),
    )
    console.print(outline_tree(root))
    _print_usage(metrics)


# ---------------------------------------------------------------------------
# polish command
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("text", required=False)
@click.option("--file", "-f", "input_file", type=click.Path(exists=True, dir_okay=False), help="Read text from a file")
@click.option(
    "--mode", "-m",
    default=TextMode.POLISH.value,
    type=click.Choice([m.value for m in TextMode]),
    help="continue, rewrite or polish",
)
@click.option("--lang", "-l", default=None, help="Output language code")
@click.option("--output", type=click.Path(dir_okay=False), default=None, help="Write the result to a file")
@click.pass_obj
def polish(settings, text, input_file, mode, lang, output):
    """Continue, rewrite or polish a passage.

    Examples:
      inkflow polish "The rain fell." -m continue
      inkflow polish -f draft.txt -m rewrite --output draft2.txt
    """
    if input_file:
        text = Path(input_file).read_text(encoding="utf-8")
    if not text or not text.strip():
        console.print("[error]Provide TEXT or --file[/]")
        sys.exit(1)

    result, metrics = _run_generation(
        settings,
        f"Processing text ({mode})",
        lambda router: router.manipulate_text(text, TextMode(mode), lang=lang),
    )
    _write_output(result, output)
    _print_usage(metrics)


# ---------------------------------------------------------------------------
# task commands
# ---------------------------------------------------------------------------

@cli.group()
def task():
    """Inspect or cancel backend tasks."""


def _with_backend(settings: Settings, operation):
    async def _run():
        async with BackendClient.from_settings(settings) as client:
            return await operation(client)

    try:
        return asyncio.run(_run())
    except InkflowError as e:
        console.print(error_panel(str(e)))
        sys.exit(1)


@task.command(name="status")
@click.argument("task_id")
@click.pass_obj
def task_status(settings, task_id):
    """Show the status of a backend task."""
    remote_task = _with_backend(settings, lambda client: client.get_task(task_id))
    console.print(task_panel(remote_task))


@task.command(name="cancel")
@click.argument("task_id")
@click.pass_obj
def task_cancel(settings, task_id):
    """Cancel a pending or running backend task."""
    message = _with_backend(settings, lambda client: client.cancel_task(task_id))
    console.print(f"[success]{message or 'Task cancelled'}[/]")


# ---------------------------------------------------------------------------
# health command
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--model", "-m", "models", multiple=True, help="Model id to check (repeatable)")
@click.pass_obj
def health(settings, models):
    """Check model availability and latency.

    Without --model, every model named in the settings is checked.
    """
    if not models:
        models = tuple(dict.fromkeys([
            settings.model_ideas,
            settings.model_architecture,
            settings.model_writing,
            settings.model_editing,
        ]))

    async def _check():
        invoker = ModelInvoker(settings)
        return [await check_model_health(invoker, m) for m in models]

    with console.status("Checking models..."):
        results = asyncio.run(_check())
    console.print(health_table(results))
    if any(r.error for r in results):
        sys.exit(1)


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
