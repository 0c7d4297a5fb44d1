"""Unified Rich theme and reusable UI helper functions for the CLI."""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.theme import Theme
from rich.tree import Tree

from models.enums import HealthStatus, TaskStatus

INKFLOW_THEME = Theme({
    "app.title": "bold",
    "success": "green",
    "warning": "yellow",
    "error": "red",
    "info": "blue",
    "muted": "dim",
    "accent": "cyan",
    "stat.label": "dim",
    "stat.value": "bold",
    "idea.title": "bold cyan",
    "node.type": "magenta",
})

TASK_STATUS_STYLES = {
    TaskStatus.PENDING: "yellow",
    TaskStatus.QUEUED: "yellow",
    TaskStatus.RUNNING: "blue",
    TaskStatus.COMPLETED: "green",
    TaskStatus.FAILED: "red",
    TaskStatus.CANCELLED: "dim",
}


def get_console() -> Console:
    """Return a Console instance with the inkflow theme applied."""
    return Console(theme=INKFLOW_THEME)


def app_header(title: str = "inkflow") -> Rule:
    """Return a Rule element for the application header banner."""
    return Rule(title=f"[bold]{title}[/]", style="dim")


def command_panel(title: str, fields: dict[str, str]) -> Panel:
    """Return a Panel displaying command parameters.

    Args:
        title: Panel title (e.g. "Daily story ideas").
        fields: Ordered dict of label -> value pairs.
    """
    lines = []
    for label, value in fields.items():
        lines.append(f"  [stat.label]{label}:[/] [stat.value]{value}[/]")
    body = "\n".join(lines)
    return Panel(body, title=f"[bold]{title}[/]", box=box.ROUNDED, border_style="dim", padding=(0, 2))


def success_panel(title: str, body: str) -> Panel:
    """Return a green-bordered Panel for success results."""
    return Panel(body, title=f"[success]{title}[/]", box=box.ROUNDED, border_style="green", padding=(0, 2))


def error_panel(message: str) -> Panel:
    return Panel(message, title="[error]Failed[/]", box=box.ROUNDED, border_style="red", padding=(0, 2))


def idea_cards(ideas: list[dict]) -> Table:
    """Build a Rich Table of generated story ideas."""
    table = Table(box=box.ROUNDED, border_style="dim", show_header=True, show_lines=True, padding=(0, 1))
    table.add_column("#", style="muted", justify="right")
    table.add_column("Title", style="idea.title")
    table.add_column("Synopsis")
    table.add_column("Cool point", style="accent")

    for i, idea in enumerate(ideas, 1):
        synopsis = idea.get("synopsis", "")
        if len(synopsis) > 120:
            synopsis = synopsis[:120] + "..."
        table.add_row(str(i), idea.get("title", "?"), synopsis, idea.get("coolPoint", ""))
    return table


def outline_tree(node, max_children: int = 10) -> Tree:
    """Build a Rich Tree from an OutlineNode."""
    tree = Tree(_node_label(node))
    _add_children(tree, node, max_children)
    return tree


def _node_label(node) -> str:
    return f"[bold]{node.name}[/] [node.type]({node.type.value})[/] [muted]{node.id or ''}[/]"


def _add_children(branch: Tree, node, max_children: int) -> None:
    for child in node.children[:max_children]:
        _add_children(branch.add(_node_label(child)), child, max_children)
    if len(node.children) > max_children:
        branch.add(f"[muted]... ({len(node.children)} total)[/]")


def task_panel(task) -> Panel:
    """Return a Panel describing a RemoteTask snapshot."""
    style = TASK_STATUS_STYLES.get(task.status, "white")
    lines = [
        f"  [stat.label]Status:[/] [{style}]{task.status.value}[/]",
        f"  [stat.label]Progress:[/] [stat.value]{task.progress:.0f}%[/]",
    ]
    if task.type:
        lines.append(f"  [stat.label]Type:[/] {task.type}")
    if task.error:
        lines.append(f"  [stat.label]Error:[/] [error]{task.error}[/]")
    return Panel(
        "\n".join(lines),
        title=f"[bold]Task[/] [muted]{task.id}[/]",
        box=box.ROUNDED,
        border_style="dim",
        padding=(0, 2),
    )


def health_table(results: list) -> Table:
    """Build a Rich Table from ModelHealthResult entries."""
    table = Table(title="Model health", box=box.ROUNDED, border_style="dim")
    table.add_column("Model", style="bold")
    table.add_column("Status")
    table.add_column("Latency", justify="right")
    table.add_column("Detail")
    for r in results:
        ok = r.status == HealthStatus.HEALTHY
        status = "[success]healthy[/]" if ok else "[error]unhealthy[/]"
        latency = f"{r.latency_ms}ms" if r.latency_ms is not None else "-"
        detail = r.response_preview if ok else (r.error or "")
        table.add_row(r.model_id, status, latency, (detail or "")[:60])
    return table
