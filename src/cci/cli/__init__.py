"""
CLI for Project CCI.

Provides command-line interface for scanning and browsing the course catalog.
"""

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
)
from rich.table import Table
from rich.tree import Tree

from cci.core.config import LoggingConfig, load_config
from cci.core.logging_setup import configure_logging
from cci.core.tree import CourseTreeNode
from cci.services import (
    ScanOrchestrator,
    ServicesContainer,
    create_services,
)

# Initialize Rich Console
console = Console()

app = typer.Typer(
    name="cci",
    help="Course Catalog Indexer - Browse course folders as a catalog",
    add_completion=False,
)

_TYPE_STYLES = {
    "folder": "bold blue",
    "video": "magenta",
    "audio": "cyan",
    "document": "green",
    "ebook": "green",
    "image": "yellow",
    "code": "bright_black",
    "archive": "red",
}


def get_services() -> ServicesContainer:
    """Initialize services from .env with config-driven settings."""
    return create_services()


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in ("KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show log output"),
):
    """Course Catalog Indexer - Browse course folders as a catalog."""
    cfg = load_config()
    level = cfg.logging.level if verbose else "WARNING"
    configure_logging(LoggingConfig(level=level, format=cfg.logging.format))


@app.command()
def scan(
    root: str = typer.Argument(..., help="Directory whose subfolders are courses"),
):
    """Rebuild the catalog from a root directory."""
    console.print(f"[bold blue]Scanning[/bold blue] {escape(root)}...")

    try:
        services = get_services()

        # Progress reporting with Rich
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("Initializing...", total=None)

            def update_progress(current: int, total: int, message: str) -> None:
                progress.update(task, completed=current, total=total, description=message)

            orchestrator = ScanOrchestrator(
                store=services.store,
                scanner=services.scanner,
                progress_callback=update_progress,
            )
            result = orchestrator.rescan(root)

        # Summary Panel
        summary = Table.grid(padding=1)
        summary.add_column(style="bold")
        summary.add_column()
        summary.add_row("Courses:", str(result.courses_added))
        summary.add_row("Folders:", str(result.folders_added))
        summary.add_row("Files:", str(result.files_added))
        summary.add_row("Duration:", f"{result.duration_seconds:.2f}s")

        console.print(
            Panel(summary, title="[bold green]Scan Complete[/bold green]", border_style="green", expand=False)
        )
        console.print(result.message)

        if result.skipped_directories:
            console.print(
                f"[yellow]![/yellow] Skipped {len(result.skipped_directories)} unreadable director(ies):"
            )
            for path in result.skipped_directories:
                console.print(f"    - {escape(path)}")

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def courses():
    """List the courses in the catalog."""
    try:
        services = get_services()
        records = services.catalog_service.list_courses()

        if not records:
            console.print("[yellow]No courses in catalog. Run 'cci scan ROOT' first.[/yellow]")
            return

        table = Table(title="Courses", border_style="blue")
        table.add_column("ID", style="bold", justify="right")
        table.add_column("Name", style="cyan")
        table.add_column("Path", style="magenta")
        table.add_column("Scanned", style="yellow", no_wrap=True)

        for course in records:
            table.add_row(
                str(course.id),
                escape(course.name),
                escape(course.path),
                course.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            )

        console.print(table)

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


def _node_label(node: CourseTreeNode) -> str:
    style = _TYPE_STYLES.get(node.type, "white")
    if node.is_folder:
        return f"[{style}]{escape(node.name)}/[/{style}]"
    return f"[{style}]{escape(node.name)}[/{style}] [dim]({node.type}, {_format_size(node.size)})[/dim]"


@app.command()
def tree(
    course_id: int = typer.Argument(..., help="Course id (see 'cci courses')"),
):
    """Show the folder and file tree of a course."""
    try:
        services = get_services()
        course = services.catalog_service.get_course(course_id)
        nodes = services.catalog_service.load_tree(course_id)

        root = Tree(f"[bold]{escape(course.name)}[/bold] [dim]{escape(course.path)}[/dim]")
        pending = [(node, root) for node in reversed(nodes)]
        while pending:
            node, parent = pending.pop()
            branch = parent.add(_node_label(node))
            pending.extend((child, branch) for child in reversed(node.children))

        console.print(root)

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def status():
    """Show catalog statistics."""
    try:
        services = get_services()
        stats = services.catalog_service.get_stats()

        # Status Grid
        grid = Table.grid(padding=1)
        grid.add_column(style="bold")
        grid.add_column()

        grid.add_row("Total Courses:", str(stats["total_courses"]))
        grid.add_row("Total Folders:", str(stats["total_folders"]))
        grid.add_row("Total Files:", str(stats["total_files"]))
        grid.add_row("Total Size:", _format_size(stats["total_bytes"]))

        console.print(Panel(grid, title="Catalog Statistics", border_style="blue", expand=False))

        if stats["types"]:
            type_table = Table(title="Content Types", box=None, show_header=True)
            type_table.add_column("Type", style="cyan")
            type_table.add_column("Files", justify="right")

            for type_name, count in stats["types"].items():
                type_table.add_row(type_name, str(count))

            console.print(Panel(type_table, border_style="blue", expand=False))

        cfg = services.config
        config_summary = f"""Database: {cfg.store.db_path}
Ignore Patterns: {', '.join(cfg.scan.ignore_patterns) or '(none)'}
Follow Symlinks: {cfg.scan.follow_symlinks}"""

        console.print(Panel(config_summary, title="Configuration", border_style="dim", expand=False))

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def reset():
    """Delete every course and course item from the catalog."""
    if not typer.confirm("Are you sure you want to reset the catalog? This will delete all data."):
        raise typer.Abort()

    try:
        services = get_services()
        services.store.clear_all()
        console.print("[bold green]Reset complete.[/bold green]")

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


def _is_port_available(host: str, port: int) -> bool:
    """Check if a port is available for binding."""
    import socket

    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        try:
            s.bind((host, port))
            return True
        except OSError:
            return False


def _find_available_port(host: str, start_port: int, max_attempts: int = 10) -> int:
    """Find an available port starting from start_port."""
    for offset in range(max_attempts):
        port = start_port + offset
        if _is_port_available(host, port):
            return port
    raise RuntimeError(f"No available port found in range {start_port}-{start_port + max_attempts - 1}")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="HTTP host (default from CCI_SERVER_HOST or 0.0.0.0)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="HTTP port (default from CCI_SERVER_PORT or 8000)"),
):
    """Start the HTTP API server."""
    import uvicorn

    try:
        from cci.http_server import create_app

        # Load config to get server defaults
        cfg = load_config()
        actual_host = host if host is not None else cfg.server.host
        requested_port = port if port is not None else cfg.server.port

        # Find available port if requested port is occupied
        actual_port = _find_available_port(actual_host, requested_port)
        if actual_port != requested_port:
            console.print(f"[yellow]Port {requested_port} is in use, using port {actual_port}[/yellow]")

        app_instance = create_app()
        console.print(f"[bold green]Starting API server at http://{actual_host}:{actual_port}[/bold green]")
        uvicorn.run(
            app_instance,
            host=actual_host,
            port=actual_port,
            reload=False,
            log_level=cfg.logging.level.lower(),
        )
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
