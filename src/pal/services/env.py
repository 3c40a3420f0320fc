"""Environment file handling: parse, serialize and merge ``.env`` files."""

import re
from pathlib import Path

from pal.models import EnvResult

_NEEDS_QUOTES = re.compile(r"[\s\"'#=]")
_PLACEHOLDER_MARKERS = ("your_", "_here")


def parse_env_file(content: str) -> dict[str, str]:
    """Parse ``KEY=value`` lines. Blank lines, comments and lines without ``=`` are skipped."""
    result: dict[str, str] = {}
    for line in content.split("\n"):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue
        key, sep, value = trimmed.partition("=")
        if not sep:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            quote = value[0]
            value = value[1:-1]
            if quote == '"':
                value = value.replace('\\"', '"')
        result[key.strip()] = value
    return result


def serialize_env_file(env: dict[str, str]) -> str:
    lines = []
    for key, value in env.items():
        if _NEEDS_QUOTES.search(value):
            escaped = value.replace('"', '\\"')
            value = f'"{escaped}"'
        lines.append(f"{key}={value}")
    return "\n".join(lines) + "\n"


def read_env_file(project_path: Path, env_file: str = ".env") -> dict[str, str]:
    env_path = project_path / env_file
    if not env_path.exists():
        return {}
    return parse_env_file(env_path.read_text(encoding="utf-8"))


def env_file_exists(project_path: Path, env_file: str = ".env") -> bool:
    return (project_path / env_file).exists()


def update_env_file(
    project_path: Path, updates: dict[str, str], env_file: str = ".env"
) -> EnvResult:
    """Merge ``updates`` into the env file, creating it if needed.

    A key that already has a real value is left alone and reported as
    skipped. Empty values and placeholders are replaced.
    """
    env_path = project_path / env_file
    result = EnvResult(path=str(env_path))

    if env_path.exists():
        existing = parse_env_file(env_path.read_text(encoding="utf-8"))
    else:
        existing = {}
        result.created = True

    for key, value in updates.items():
        current = existing.get(key)
        if current and not is_placeholder(current):
            result.skipped.append(key)
        else:
            existing[key] = value
            result.updated.append(key)

    env_path.write_text(serialize_env_file(existing), encoding="utf-8")
    return result


def ensure_gitignore_has_env(project_path: Path, env_file: str = ".env") -> bool:
    """Add the env file to ``.gitignore`` unless already covered.

    Returns True if ``.gitignore`` was modified.
    """
    gitignore = project_path / ".gitignore"
    content = gitignore.read_text(encoding="utf-8") if gitignore.exists() else ""
    lines = {line.strip() for line in content.split("\n")}
    if env_file in lines or "*.env" in lines or ".env*" in lines:
        return False

    new_content = content.rstrip() + "\n\n# Environment variables\n" + env_file + "\n"
    gitignore.write_text(new_content, encoding="utf-8")
    return True


def is_placeholder(value: str) -> bool:
    """Whether an env value looks like a template placeholder (``your_key_here``)."""
    return any(marker in value for marker in _PLACEHOLDER_MARKERS)
