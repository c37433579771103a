#!/usr/bin/env python3
"""
CLI for the Budget Planner.

Usage:
    python cli.py init-db
    python cli.py import-budget data/budget.csv --year 2025
    python cli.py export-processes data/schedule.csv --project-id <id>
    python cli.py serve --port 8000

Commands:
    init-db           Create the database schema
    import-budget     Import department budget items from CSV
    export-budget     Export department budget items to CSV
    import-processes  Import project processes from CSV
    export-processes  Export project processes to CSV
    serve             Start the API server
    version           Display version information
"""
import click
import logging

from budget_planner import __version__
from budget_planner.config import get_config
from budget_planner.cli import register_commands

# Configure logging
config = get_config()
logging.basicConfig(level=config.log_level, format=config.log_format)
logger = logging.getLogger(__name__)


@click.group()
@click.version_option(version=__version__)
def cli():
    """Budget Planner CLI.

    Manage budget items and project schedules that move through the
    draft / pending / approved workflow.
    """
    pass


@cli.command('init-db')
def init_db_command():
    """Create all tables in the configured database."""
    from budget_planner.models import init_db

    init_db()
    click.echo(click.style(f"Database ready: {config.database_url}", fg='green'))


@cli.command()
@click.option('--port', type=int, default=8000, help='Server port')
@click.option('--host', default='0.0.0.0', help='Server host')
@click.option('--reload', is_flag=True, help='Enable auto-reload')
def serve(port: int, host: str, reload: bool):
    """Start the API server.

    Runs the FastAPI application with uvicorn.

    Example:
        python cli.py serve --port 8000 --reload
    """
    import uvicorn

    click.echo(click.style('Budget Planner - API Server', fg='cyan', bold=True))
    click.echo(f"Starting server at http://{host}:{port}")
    click.echo("Press CTRL+C to stop\n")

    uvicorn.run(
        "budget_planner.main:app",
        host=host,
        port=port,
        reload=reload
    )


@cli.command()
def version():
    """Display version information."""
    click.echo(click.style('Budget Planner', fg='cyan', bold=True))
    click.echo(f"Version: {__version__}")
    click.echo(f"Config:  {config.version}")
    click.echo(f"Database: {config.database_url}")


register_commands(cli)


if __name__ == '__main__':
    cli()
