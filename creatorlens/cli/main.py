"""
Main CLI entry point for CreatorLens
"""

import click

from ..core.observability import setup_logfire
from .report import report_group


@click.group()
@click.version_option(version='0.1.0')
def cli():
    """
    CreatorLens - TikTok content analytics

    Aggregate per-video metrics into cohorts, heatmaps, composite scores
    and period-over-period traffic deltas.
    """
    setup_logfire()


# Register command groups
cli.add_command(report_group)


if __name__ == '__main__':
    cli()
