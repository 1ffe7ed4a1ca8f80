"""Unit tests for CLI commands."""

import pytest
import typer
from typer.testing import CliRunner

from flatsocial.cli import app
from flatsocial.store import SocialStore

runner = CliRunner()


@pytest.fixture
def cli_data_dir(tmp_path, monkeypatch):
    """Point the CLI at an empty data directory."""
    path = tmp_path / "cli-data"
    monkeypatch.setenv("DATA_DIR", str(path))
    monkeypatch.setenv("SEED_SAMPLE_DATA", "false")
    return path


def invoke(*args: str):
    result = runner.invoke(app, list(args))
    if result.exception and not isinstance(result.exception, SystemExit):
        print(f"stdout: {result.stdout}")
        print(f"exception: {result.exception!r}")
    return result


def open_store(path) -> SocialStore:
    store = SocialStore(path)
    store.initialize()
    return store


class TestInit:
    """Tests for the init command."""

    def test_cli_app_exists(self):
        assert isinstance(app, typer.Typer)

    def test_init_without_seed(self, cli_data_dir):
        result = invoke("init")

        assert result.exit_code == 0
        assert "Store ready" in result.stdout
        assert (cli_data_dir / "users.csv").exists()
        assert open_store(cli_data_dir).all_usernames() == []

    def test_init_with_seed(self, cli_data_dir):
        result = invoke("init", "--seed")

        assert result.exit_code == 0
        assert "Seeded sample users" in result.stdout

        store = open_store(cli_data_dir)
        assert store.all_usernames() == ["admin", "jane", "john"]
        assert store.validate_login("john", "123")
        assert [v.content for v in store.fetch_all_posts()] == [
            "Hello from John! #welcome",
            "Jane's first post :)",
        ]

    def test_seed_only_into_empty_store(self, cli_data_dir):
        invoke("init", "--seed")
        result = invoke("init", "--seed")

        assert result.exit_code == 0
        assert "Seeded" not in result.stdout
        assert len(open_store(cli_data_dir).all_usernames()) == 3


class TestAccounts:
    """Tests for register and login."""

    def test_register(self, cli_data_dir):
        result = invoke("register", "alice", "--password", "secret")

        assert result.exit_code == 0
        assert "Account created: @alice" in result.stdout

    def test_register_duplicate_fails(self, cli_data_dir):
        invoke("register", "alice", "--password", "secret")
        result = invoke("register", "alice", "--password", "other")

        assert result.exit_code == 1
        assert "is taken" in result.stdout

    def test_register_blank_username_fails(self, cli_data_dir):
        result = invoke("register", "   ", "--password", "secret")

        assert result.exit_code == 1
        assert "Enter credentials" in result.stdout

    def test_register_trailing_comma_fails(self, cli_data_dir):
        result = invoke("register", "bob,", "--password", "secret")

        assert result.exit_code == 1
        assert "Registration failed" in result.stdout
        assert open_store(cli_data_dir).all_usernames() == []

    def test_login(self, cli_data_dir):
        invoke("register", "alice", "--password", "secret")

        assert "Welcome @alice" in invoke("login", "alice", "--password", "secret").stdout
        assert invoke("login", "alice", "--password", "wrong").exit_code == 1


class TestSocialCommands:
    """Tests for post, follow, like, comment and the listings."""

    @pytest.fixture(autouse=True)
    def _users(self, cli_data_dir):
        invoke("register", "alice", "--password", "a")
        invoke("register", "bob", "--password", "b")

    def test_post_and_timeline(self, cli_data_dir):
        result = invoke("post", "alice", "hello there")
        assert result.exit_code == 0
        assert "Posted #1" in result.stdout

        timeline = invoke("timeline", "alice")
        assert timeline.exit_code == 0
        assert "hello there" in timeline.stdout

    def test_post_unknown_user(self, cli_data_dir):
        result = invoke("post", "carol", "hi")

        assert result.exit_code == 1
        assert "Unknown user @carol" in result.stdout

    def test_post_with_image(self, cli_data_dir, image_file):
        result = invoke("post", "alice", "pic", "--image", str(image_file))

        assert result.exit_code == 0
        stored = list((cli_data_dir / "posts_images").iterdir())
        assert len(stored) == 1
        assert stored[0].name.endswith("_cat.png")

    def test_follow_and_timeline(self, cli_data_dir):
        invoke("post", "bob", "from bob")

        assert "from bob" not in invoke("timeline", "alice").stdout

        result = invoke("follow", "alice", "bob")
        assert result.exit_code == 0
        assert "Now following @bob" in result.stdout
        assert "from bob" in invoke("timeline", "alice").stdout

    def test_follow_self(self, cli_data_dir):
        result = invoke("follow", "alice", "alice")

        assert result.exit_code == 0
        assert "cannot follow yourself" in result.stdout

    def test_like_and_comment(self, cli_data_dir):
        invoke("post", "alice", "rate me")

        assert "now has 1 likes" in invoke("like", "bob", "1").stdout
        assert "now has 1 comments" in invoke("comment", "bob", "1", "nice").stdout

    def test_empty_comment_rejected(self, cli_data_dir):
        result = invoke("comment", "bob", "1", "   ")

        assert result.exit_code == 1

    def test_posts_by_user(self, cli_data_dir):
        invoke("post", "alice", "by alice")
        invoke("post", "bob", "by bob")

        result = invoke("posts", "--user", "bob")

        assert result.exit_code == 0
        assert "by bob" in result.stdout
        assert "by alice" not in result.stdout

    def test_users_search(self, cli_data_dir):
        result = invoke("users", "--search", "AL")

        assert "alice" in result.stdout
        assert "bob" not in result.stdout

    def test_avatar(self, cli_data_dir, image_file):
        result = invoke("avatar", "bob", str(image_file))

        assert result.exit_code == 0
        assert open_store(cli_data_dir).get_avatar_filename(2).endswith("_cat.png")

    def test_export(self, cli_data_dir, tmp_path):
        target = tmp_path / "users.csv"

        result = invoke("export", "--output", str(target))

        assert result.exit_code == 0
        assert target.read_text(encoding="utf-8").splitlines() == [
            "id,username,avatar",
            "1,alice,",
            "2,bob,",
        ]

    def test_status(self, cli_data_dir):
        result = invoke("status")

        assert result.exit_code == 0
        assert "Store Statistics" in result.stdout
        assert "Users" in result.stdout


class TestMetricsCommand:
    """Tests for the metrics command."""

    def test_prints_registry_after_scan(self, cli_data_dir):
        result = invoke("metrics")

        assert result.exit_code == 0
        assert "flatsocial_store_operations_total" in result.stdout
        assert 'operation="get_statistics"' in result.stdout

    def test_reports_malformed_lines_in_current_files(self, cli_data_dir):
        invoke("init")
        (cli_data_dir / "follows.csv").write_text("broken\n1,2\n", encoding="utf-8")

        result = invoke("metrics")

        assert result.exit_code == 0
        assert 'flatsocial_malformed_records_total{file="follows.csv"}' in result.stdout

    def test_help_states_process_scope(self):
        result = invoke("metrics", "--help")

        assert result.exit_code == 0
        assert "this invocation" in " ".join(result.stdout.split())
