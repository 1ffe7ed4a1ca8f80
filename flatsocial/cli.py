"""Command-line interface for flatsocial.

This module provides a Typer-based front end over ``SocialStore``. Every
command opens the store in the configured data directory, runs one operation
and exits.

Commands:
- init: Create the data files (optionally seeding demo data)
- register / login: Account management
- post / follow / like / comment: Social actions
- timeline / posts / users: Queries
- avatar: Import an avatar image
- export: Write the users CSV snapshot
- status: Show store statistics
- metrics: Scan the store and print this process's Prometheus metrics

Example:
    $ flatsocial init --seed
    $ flatsocial register alice --password secret
    $ flatsocial post alice "hello, world"
    $ flatsocial timeline alice
"""

import sys
from pathlib import Path
from typing import NoReturn, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from flatsocial.config import get_settings
from flatsocial.io import ConflictError, NotFoundError, StoreError
from flatsocial.logging import clear_log_context, set_log_context
from flatsocial.metrics import generate_metrics_output, initialize_metrics
from flatsocial.models import PostView
from flatsocial.store import SocialStore

# Initialize CLI app
app = typer.Typer(
    name="flatsocial",
    help="Flat-file social network store",
    add_completion=False,
)
console = Console()

SAMPLE_USERS = [("john", "123"), ("jane", "456"), ("admin", "admin")]
SAMPLE_POSTS = [("john", "Hello from John! #welcome"), ("jane", "Jane's first post :)")]

VerboseOption = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")


# =============================================================================
# Helper Functions
# =============================================================================


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbose: If True, set DEBUG level; otherwise WARNING so command output stays clean
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else "WARNING",
        colorize=True,
        format="<green>{time:HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[command]}</cyan> - "
        "{message}",
    )


def open_store(operation: str) -> SocialStore:
    """Open and initialize the store in the configured data directory.

    Settings are re-read so environment changes (``DATA_DIR``) apply.

    Raises:
        typer.Exit: If the store cannot be initialized
    """
    set_log_context(command=operation)
    store = SocialStore(get_settings().data_dir)
    try:
        store.initialize()
    except StoreError as e:
        console.print(f"❌ [bold red]Storage init failed: {e}[/bold red]")
        raise typer.Exit(code=1)
    return store


def resolve_user(store: SocialStore, username: str) -> int:
    """Id of ``username`` or exit with an error."""
    try:
        return store.get_user_id(username)
    except NotFoundError:
        console.print(f"❌ [bold red]Unknown user @{username}[/bold red]")
        raise typer.Exit(code=1)


def seed_sample_data(store: SocialStore) -> bool:
    """Create demo users and posts if the store has no users.

    Returns:
        True if data was seeded
    """
    if store.all_usernames():
        return False

    for username, password in SAMPLE_USERS:
        store.create_user(username, password)
    for username, content in SAMPLE_POSTS:
        store.add_post(store.get_user_id(username), content)

    logger.info(f"✅ Seeded {len(SAMPLE_USERS)} users and {len(SAMPLE_POSTS)} posts")
    return True


def render_posts(title: str, posts: list[PostView]) -> None:
    """Print post views as a table."""
    if not posts:
        console.print(f"📭 {title}: no posts yet")
        return

    table = Table(title=title)
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Author", style="magenta")
    table.add_column("Posted", style="yellow")
    table.add_column("Content")
    table.add_column("♥", justify="right", style="green")
    table.add_column("💬", justify="right", style="green")
    table.add_column("Image", style="dim")

    for view in posts:
        table.add_row(
            str(view.post_id),
            f"@{view.username}",
            view.created_at,
            view.content,
            str(view.likes),
            str(view.comments),
            view.image_filename or "",
        )

    console.print(table)


def fail(message: str) -> NoReturn:
    console.print(f"\n❌ [bold red]{message}[/bold red]")
    raise typer.Exit(code=1)


# =============================================================================
# CLI Commands
# =============================================================================


@app.command()
def init(
    seed: Optional[bool] = typer.Option(
        None,
        "--seed/--no-seed",
        help="Seed demo users and posts into an empty store (defaults to SEED_SAMPLE_DATA)",
    ),
    verbose: bool = VerboseOption,
) -> None:
    """Create the data directory, flat files and media directories.

    Examples:
        $ flatsocial init
        $ flatsocial init --no-seed
    """
    setup_logging(verbose)

    store = open_store("init")
    console.print(f"📍 Data directory: [yellow]{store.data_dir}[/yellow]")

    should_seed = get_settings().seed_sample_data if seed is None else seed
    try:
        if should_seed and seed_sample_data(store):
            console.print("🌱 Seeded sample users: john/123, jane/456, admin/admin")
    except StoreError as e:
        fail(f"Seeding failed: {e}")

    console.print("✅ [bold green]Store ready[/bold green]")


@app.command()
def register(
    username: str = typer.Argument(..., help="New username"),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, confirmation_prompt=True
    ),
    verbose: bool = VerboseOption,
) -> None:
    """Register a new account."""
    setup_logging(verbose)

    username = username.strip()
    if not username or not password:
        fail("Enter credentials")

    store = open_store("register")
    try:
        user_id = store.create_user(username, password)
    except ConflictError:
        fail(f"Registration failed: @{username} is taken")
    except StoreError as e:
        fail(f"Registration failed: {e}")
    else:
        console.print(f"✅ [bold green]Account created: @{username} (ID:{user_id})[/bold green]")


@app.command()
def login(
    username: str = typer.Argument(..., help="Username"),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True),
    verbose: bool = VerboseOption,
) -> None:
    """Check a username and password."""
    setup_logging(verbose)

    store = open_store("login")
    try:
        ok = store.validate_login(username.strip(), password)
    except StoreError as e:
        fail(f"Login failed: {e}")

    if not ok:
        fail("Login failed")
    console.print(
        f"✅ [bold green]Welcome @{username} (ID:{store.get_user_id(username.strip())})[/bold green]"
    )


@app.command()
def post(
    username: str = typer.Argument(..., help="Author"),
    content: str = typer.Argument(..., help="Post text"),
    image: Optional[Path] = typer.Option(
        None, "--image", "-i", exists=True, dir_okay=False, help="Image to attach"
    ),
    verbose: bool = VerboseOption,
) -> None:
    """Publish a post, optionally with an image."""
    setup_logging(verbose)

    store = open_store("post")
    author_id = resolve_user(store, username)
    set_log_context(user_id=str(author_id))

    try:
        image_filename = store.attach_post_image(image) if image else None
        post_id = store.add_post(author_id, content.strip(), image_filename)
    except StoreError as e:
        fail(f"Post failed: {e}")
    else:
        console.print(f"✅ [bold green]Posted #{post_id}[/bold green]")
        if image_filename:
            console.print(f"🖼️  Image attached: [yellow]{image_filename}[/yellow]")
    finally:
        clear_log_context()


@app.command()
def follow(
    username: str = typer.Argument(..., help="Follower"),
    target: str = typer.Argument(..., help="User to follow"),
    verbose: bool = VerboseOption,
) -> None:
    """Follow another user."""
    setup_logging(verbose)

    store = open_store("follow")
    follower_id = resolve_user(store, username)
    followee_id = resolve_user(store, target)

    try:
        written = store.follow(follower_id, followee_id)
    except StoreError as e:
        fail(f"Follow failed: {e}")

    if written:
        console.print(f"✅ [bold green]Now following @{target}[/bold green]")
    else:
        console.print("⚠️  [yellow]You cannot follow yourself[/yellow]")


@app.command()
def like(
    username: str = typer.Argument(..., help="Liking user"),
    post_id: int = typer.Argument(..., help="Post to like"),
    verbose: bool = VerboseOption,
) -> None:
    """Like a post."""
    setup_logging(verbose)

    store = open_store("like")
    user_id = resolve_user(store, username)

    try:
        store.like(post_id, user_id)
    except StoreError as e:
        fail(f"Like failed: {e}")

    console.print(f"♥ Post #{post_id} now has {store.count_likes(post_id)} likes")


@app.command()
def comment(
    username: str = typer.Argument(..., help="Commenting user"),
    post_id: int = typer.Argument(..., help="Post to comment on"),
    text: str = typer.Argument(..., help="Comment text"),
    verbose: bool = VerboseOption,
) -> None:
    """Comment on a post."""
    setup_logging(verbose)

    text = text.strip()
    if not text:
        fail("Comment is empty")

    store = open_store("comment")
    user_id = resolve_user(store, username)

    try:
        store.comment(post_id, user_id, text)
    except StoreError as e:
        fail(f"Comment failed: {e}")

    console.print(f"💬 Post #{post_id} now has {store.count_comments(post_id)} comments")


@app.command()
def timeline(
    username: str = typer.Argument(..., help="Viewing user"),
    verbose: bool = VerboseOption,
) -> None:
    """Show a user's home timeline (own posts plus followed users), newest first."""
    setup_logging(verbose)

    store = open_store("timeline")
    user_id = resolve_user(store, username)
    render_posts(f"Timeline for @{username}", store.fetch_timeline_for_user(user_id))


@app.command()
def posts(
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Only this author's posts"),
    verbose: bool = VerboseOption,
) -> None:
    """List posts in file order, optionally for one author (profile view)."""
    setup_logging(verbose)

    store = open_store("posts")
    if user:
        user_id = resolve_user(store, user)
        avatar = store.get_avatar_filename(user_id)
        console.print(f"👤 @{user} (ID:{user_id}) avatar: {avatar or '[No Avatar]'}")
        render_posts(f"Posts by @{user}", store.fetch_posts_by_user(user_id))
    else:
        render_posts("All posts", store.fetch_all_posts())


@app.command()
def users(
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Case-insensitive filter"),
    verbose: bool = VerboseOption,
) -> None:
    """List usernames, optionally filtered."""
    setup_logging(verbose)

    store = open_store("users")
    names = store.search_usernames(search or "")

    table = Table(title="Users")
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Username", style="magenta")
    for index, name in enumerate(names, start=1):
        table.add_row(str(index), name)
    console.print(table)


@app.command()
def avatar(
    username: str = typer.Argument(..., help="User whose avatar to set"),
    image: Path = typer.Argument(..., exists=True, dir_okay=False, help="Image file"),
    verbose: bool = VerboseOption,
) -> None:
    """Import an image as a user's avatar."""
    setup_logging(verbose)

    store = open_store("avatar")
    user_id = resolve_user(store, username)

    try:
        filename = store.import_avatar(user_id, image)
    except StoreError as e:
        fail(f"Avatar set failed: {e}")
    else:
        console.print(f"✅ [bold green]Avatar set: {filename}[/bold green]")


@app.command()
def export(
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="CSV file to write (defaults to <data dir>/export/users_export.csv)",
    ),
    verbose: bool = VerboseOption,
) -> None:
    """Export id, username and avatar of every user to CSV."""
    setup_logging(verbose)

    store = open_store("export")
    try:
        path = store.export_users(output)
    except StoreError as e:
        fail(f"Export failed: {e}")
    else:
        console.print(f"✅ [bold green]Exported to {path}[/bold green]")


@app.command()
def status(verbose: bool = VerboseOption) -> None:
    """Show configuration and record counts."""
    setup_logging(verbose)

    settings = get_settings()
    store = open_store("status")

    config_table = Table(title="Configuration", show_header=False)
    config_table.add_column("Key", style="cyan")
    config_table.add_column("Value", style="yellow")
    config_table.add_row("Environment", settings.environment.value)
    config_table.add_row("Data Directory", str(store.data_dir))
    config_table.add_row("Log Level", settings.log_level)
    config_table.add_row("Metrics", "enabled" if settings.metrics_enabled else "disabled")
    console.print(config_table)
    console.print()

    try:
        stats = store.get_statistics()
    except StoreError as e:
        fail(f"Status failed: {e}")

    stats_table = Table(title="Store Statistics")
    stats_table.add_column("Entity", style="cyan")
    stats_table.add_column("Count", justify="right", style="green")
    stats_table.add_row("Users", f"{stats['users']:,}")
    stats_table.add_row("Posts", f"{stats['posts']:,}")
    stats_table.add_row("Follows", f"{stats['follows']:,}")
    stats_table.add_row("Likes", f"{stats['likes']:,}")
    stats_table.add_row("Comments", f"{stats['comments']:,}")
    console.print(stats_table)

    console.print(
        f"🔢 Next ids: user [yellow]{stats['next_user_id']}[/yellow], "
        f"post [yellow]{stats['next_post_id']}[/yellow]"
    )


@app.command()
def metrics(verbose: bool = VerboseOption) -> None:
    """Scan the store and print this process's metrics in Prometheus text format.

    Counters are kept in memory and cover only this invocation: the full scan
    done here (record counts, malformed lines per file, operation latency),
    not earlier commands.
    """
    setup_logging(verbose)
    initialize_metrics()

    store = open_store("metrics")
    try:
        store.get_statistics()
    except StoreError as e:
        fail(f"Metrics scan failed: {e}")

    typer.echo(generate_metrics_output().decode("utf-8"))


def main() -> None:
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
