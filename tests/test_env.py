"""Tests for .env parsing, serialization and merging."""

from pal.services.env import (
    ensure_gitignore_has_env,
    env_file_exists,
    is_placeholder,
    parse_env_file,
    read_env_file,
    serialize_env_file,
    update_env_file,
)


class TestParse:
    def test_basic(self):
        env = parse_env_file("API_KEY=secret123\nDATABASE_URL=postgres://localhost\n")
        assert env == {"API_KEY": "secret123", "DATABASE_URL": "postgres://localhost"}

    def test_quoted_values(self):
        env = parse_env_file('QUOTED="hello world"\nSINGLE=\'test\'\n')
        assert env["QUOTED"] == "hello world"
        assert env["SINGLE"] == "test"

    def test_ignores_comments_blanks_and_bare_lines(self):
        env = parse_env_file("# comment\n\n  \nNOEQUALS\nKEY=value\n")
        assert env == {"KEY": "value"}

    def test_value_keeps_later_equals(self):
        assert parse_env_file("URL=a=b=c")["URL"] == "a=b=c"

    def test_trims_whitespace(self):
        assert parse_env_file("  KEY  =  value  ") == {"KEY": "value"}


class TestSerialize:
    def test_plain_and_quoted(self):
        text = serialize_env_file({"A": "plain", "B": "has space", "C": 'say "hi"'})
        assert text == 'A=plain\nB="has space"\nC="say \\"hi\\""\n'

    def test_hash_and_equals_are_quoted(self):
        text = serialize_env_file({"A": "x#y", "B": "k=v"})
        assert text == 'A="x#y"\nB="k=v"\n'

    def test_parse_reads_back_simple_values(self):
        env = {"API_KEY": "sk-123", "MSG": "hello world"}
        assert parse_env_file(serialize_env_file(env)) == env

    def test_embedded_double_quotes_read_back(self):
        env = {"A": 'a"b', "B": 'say "hi"'}
        assert parse_env_file(serialize_env_file(env)) == env


class TestFiles:
    def test_exists(self, tmp_path):
        assert env_file_exists(tmp_path) is False
        (tmp_path / ".env.local").write_text("A=1\n")
        assert env_file_exists(tmp_path, ".env.local") is True
        assert env_file_exists(tmp_path, ".env") is False

    def test_read_missing_is_empty(self, tmp_path):
        assert read_env_file(tmp_path) == {}

    def test_update_creates_file(self, tmp_path):
        result = update_env_file(tmp_path, {"API_KEY": "sk-1"})
        assert result.created is True
        assert result.updated == ["API_KEY"]
        assert (tmp_path / ".env").read_text() == "API_KEY=sk-1\n"

    def test_update_merges_into_existing(self, tmp_path):
        (tmp_path / ".env").write_text("EXISTING=value\n")
        result = update_env_file(tmp_path, {"NEW_KEY": "new_value"})
        assert result.created is False
        content = (tmp_path / ".env").read_text()
        assert "EXISTING=value" in content
        assert "NEW_KEY=new_value" in content

    def test_update_skips_existing_values(self, tmp_path):
        (tmp_path / ".env").write_text("API_KEY=existing\n")
        result = update_env_file(tmp_path, {"API_KEY": "new"})
        assert result.skipped == ["API_KEY"]
        assert result.updated == []
        assert "API_KEY=existing" in (tmp_path / ".env").read_text()

    def test_update_fills_empty_values(self, tmp_path):
        (tmp_path / ".env").write_text("API_KEY=\n")
        result = update_env_file(tmp_path, {"API_KEY": "filled"})
        assert result.updated == ["API_KEY"]
        assert read_env_file(tmp_path) == {"API_KEY": "filled"}

    def test_update_replaces_placeholder(self, tmp_path):
        (tmp_path / ".env").write_text("API_KEY=your_openai_key_here\n")
        result = update_env_file(tmp_path, {"API_KEY": "sk-real"})
        assert result.updated == ["API_KEY"]
        assert result.skipped == []
        assert read_env_file(tmp_path) == {"API_KEY": "sk-real"}


class TestGitignore:
    def test_adds_entry(self, tmp_path):
        (tmp_path / ".gitignore").write_text("node_modules\n")
        assert ensure_gitignore_has_env(tmp_path) is True
        content = (tmp_path / ".gitignore").read_text()
        assert content == "node_modules\n\n# Environment variables\n.env\n"

    def test_creates_gitignore(self, tmp_path):
        assert ensure_gitignore_has_env(tmp_path, ".env.local") is True
        assert ".env.local" in (tmp_path / ".gitignore").read_text().splitlines()

    def test_already_covered(self, tmp_path):
        for pattern in (".env", "*.env", ".env*"):
            (tmp_path / ".gitignore").write_text(f"{pattern}\n")
            assert ensure_gitignore_has_env(tmp_path) is False


def test_is_placeholder():
    assert is_placeholder("your_openai_key_here") is True
    assert is_placeholder("sk-real") is False
