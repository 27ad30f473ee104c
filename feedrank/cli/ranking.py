"""CLI commands for the ranking engine."""

import json
import logging
import sys
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import click
import structlog

from feedrank.cache import InMemoryCache
from feedrank.config import ConfigValidationError, RankingConfig, load_ranking_config
from feedrank.errors import RankingError
from feedrank.observability.logging import (
    bind_job_context,
    clear_job_context,
    configure_logging,
)
from feedrank.ranker import ContentRankingService, describe_configuration
from feedrank.ranker.domain import normalize_domain
from feedrank.settings import RankingSettings, get_settings
from feedrank.store import PostQuery, SqlitePostStore


logger = structlog.get_logger()

# Posts considered by the preview command
PREVIEW_POOL_SIZE = 50

TITLE_WIDTH = 40


@dataclass
class CliOptions:
    """Options shared by all commands."""

    state_path: Path | None
    config_path: Path | None
    json_logs: bool
    verbose: bool


def _truncate(text: str, length: int) -> str:
    if len(text) <= length:
        return text
    return text[: length - 3] + "..."


def _setup(options: CliOptions, command: str) -> tuple[RankingSettings, RankingConfig]:
    """Configure logging and load configuration for a command.

    Args:
        options: Shared CLI options.
        command: Command name for log context.

    Returns:
        Tuple of (settings, config). Exits with status 1 on invalid config.
    """
    log_level = logging.DEBUG if options.verbose else logging.INFO
    configure_logging(level=log_level, json_format=options.json_logs)
    bind_job_context(str(uuid.uuid4()), command=command)

    settings = get_settings()
    config_path = options.config_path or settings.config_path

    try:
        config = load_ranking_config(config_path, settings=settings)
    except ConfigValidationError as e:
        click.echo(f"Configuration validation failed: {e.file_path}", err=True)
        for error in e.errors:
            click.echo(f"  - {error['loc']}: {error['msg']}", err=True)
        sys.exit(1)

    return settings, config


def _resolve_state_path(options: CliOptions, settings: RankingSettings) -> Path:
    state_path = options.state_path or settings.db_path
    if state_path is None:
        click.echo("Error: --state or FEEDRANK_DB_PATH is required", err=True)
        sys.exit(1)
    return state_path


def _open_store(options: CliOptions, settings: RankingSettings) -> SqlitePostStore:
    return SqlitePostStore(_resolve_state_path(options, settings))


@click.group()
@click.version_option(version="1.0.0")
@click.option(
    "--state",
    "state_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to SQLite posts database (or FEEDRANK_DB_PATH).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to ranking.yaml configuration file.",
)
@click.option(
    "--json-logs/--no-json-logs",
    default=True,
    help="Use JSON format for logs (default: true).",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    state_path: Path | None,
    config_path: Path | None,
    json_logs: bool,
    verbose: bool,
) -> None:
    """Content ranking engine CLI."""
    ctx.obj = CliOptions(
        state_path=state_path,
        config_path=config_path,
        json_logs=json_logs,
        verbose=verbose,
    )
    ctx.call_on_close(clear_job_context)


@cli.command()
@click.option(
    "--force",
    is_flag=True,
    help="Recalculate scores for all posts, not only stale ones.",
)
@click.pass_obj
def calculate(options: CliOptions, force: bool) -> None:
    """Calculate and persist ranking scores for published posts."""
    settings, config = _setup(options, "calculate")

    try:
        with _open_store(options, settings) as store:
            service = ContentRankingService(store, InMemoryCache(), config=config)
            count = service.recalculate_scores(force=force)
    except RankingError as e:
        click.echo(f"Score calculation failed: {e}", err=True)
        sys.exit(1)

    logger.info("calculate_complete", scores_written=count, force=force)
    click.echo(f"Updated ranking scores for {count} posts.")


@cli.command()
@click.option(
    "--limit",
    type=int,
    default=10,
    help="Number of ranked posts to show (default: 10).",
)
@click.pass_obj
def preview(options: CliOptions, limit: int) -> None:
    """Preview the ranking of existing posts.

    Ranks up to 50 recent published posts with fresh scores, then shows the
    top entries, the score breakdown of the first one, and the current hero
    and trending selections.
    """
    settings, config = _setup(options, "preview")
    now = datetime.now(UTC)

    try:
        with _open_store(options, settings) as store:
            service = ContentRankingService(store, InMemoryCache(), config=config)
            posts = store.query(PostQuery(now=now, limit=PREVIEW_POOL_SIZE))

            if not posts:
                click.echo("No published posts found. Please add some posts first.", err=True)
                sys.exit(1)

            click.echo(f"Found {len(posts)} published posts. Ranking top {limit}...")
            click.echo("")

            ranked = service.rank_posts(posts, now=now)[:limit]
            click.echo(
                f"{'Rank':>4}  {'Title':<{TITLE_WIDTH}}  {'Source':<24}"
                f"  {'Score':>6}  {'Views':>6}  {'Likes':>6}"
            )
            click.echo("-" * (TITLE_WIDTH + 58))
            for rank, post in enumerate(ranked, start=1):
                score = service.calculate_content_score(post, now=now)
                click.echo(
                    f"{rank:>4}  {_truncate(post.title, TITLE_WIDTH):<{TITLE_WIDTH}}"
                    f"  {normalize_domain(post.source_url):<24}  {score:>6.2f}"
                    f"  {post.views_count:>6}  {post.likes_count:>6}"
                )

            if ranked:
                breakdown = service.get_score_breakdown(ranked[0], now=now)
                click.echo("")
                click.echo("Top ranking factors:")
                click.echo(
                    f"  Source Authority: {breakdown.source_authority.score:.2f}"
                    f" (weight: {breakdown.source_authority.weight})"
                )
                click.echo(
                    f"  Recency: {breakdown.recency.score:.2f}"
                    f" (weight: {breakdown.recency.weight})"
                )
                click.echo(
                    f"  Engagement: {breakdown.engagement.score:.2f}"
                    f" (weight: {breakdown.engagement.weight})"
                )
                if breakdown.source_diversity is not None:
                    click.echo(
                        f"  Source Diversity: {breakdown.source_diversity.score:.2f}"
                        f" (weight: {breakdown.source_diversity.weight})"
                    )
                click.echo(f"  Total Score: {breakdown.total_score:.2f}")

            sections = [
                ("Hero Content (High Quality Posts):", service.get_hero_content(3, now=now)),
                (
                    "Trending Posts (Recent High Engagement):",
                    service.get_trending_posts(3, now=now),
                ),
            ]
            for heading, section_posts in sections:
                if not section_posts:
                    continue
                click.echo("")
                click.echo(heading)
                for index, post in enumerate(section_posts, start=1):
                    score = service.calculate_content_score(post, now=now)
                    click.echo(f"  {index}. {post.title} (Score: {score:.2f})")
    except RankingError as e:
        click.echo(f"Preview failed: {e}", err=True)
        sys.exit(1)


@cli.command("show-config")
@click.pass_obj
def show_config(options: CliOptions) -> None:
    """Print the effective ranking configuration as JSON."""
    _settings, config = _setup(options, "show-config")
    click.echo(json.dumps(describe_configuration(config), indent=2))


@cli.command()
@click.argument("post_id", type=int)
@click.pass_obj
def breakdown(options: CliOptions, post_id: int) -> None:
    """Show the score breakdown for a single post."""
    settings, config = _setup(options, "breakdown")

    try:
        with _open_store(options, settings) as store:
            post = store.get_post(post_id)
            if post is None:
                click.echo(f"Post not found: {post_id}", err=True)
                sys.exit(1)

            service = ContentRankingService(store, InMemoryCache(), config=config)
            result = service.get_score_breakdown(post)
    except RankingError as e:
        click.echo(f"Breakdown failed: {e}", err=True)
        sys.exit(1)

    click.echo(json.dumps(result.to_dict(), indent=2))


@cli.command("db-stats")
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output as JSON.",
)
@click.pass_obj
def db_stats(options: CliOptions, json_output: bool) -> None:
    """Display posts database statistics."""
    settings, _config = _setup(options, "db-stats")

    try:
        with _open_store(options, settings) as store:
            stats = store.get_stats()
            schema_version = store.get_schema_version()
    except RankingError as e:
        click.echo(f"Could not read database: {e}", err=True)
        sys.exit(1)

    if json_output:
        click.echo(json.dumps({"schema_version": schema_version, "posts": stats}, indent=2))
        return

    click.echo("Posts Database Statistics")
    click.echo("=" * 40)
    click.echo(f"  Schema Version: {schema_version}")
    click.echo("")
    click.echo("Post Counts:")
    for name, count in sorted(stats.items()):
        click.echo(f"  {name}: {count}")
