"""Shared fixtures: sample projects, a fake build runner, tree snapshots."""

import json
import os
from pathlib import Path

import pytest

from tools.base import ToolResult, ToolStatus
from tools.supervisor import SupervisorEvent


def write_json(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


def read_json(path: Path):
    return json.loads(path.read_text(encoding="utf-8"))


class FakeBuildRunner:
    """Stands in for `npm run build`: writes dist/index.js, or fails on request."""

    def __init__(self, fail=()):
        self.fail = set(fail)
        self.calls: list[tuple[str, Path]] = []

    def __call__(self, command: str, working_dir: Path) -> ToolResult:
        working_dir = Path(working_dir)
        self.calls.append((command, working_dir))

        if working_dir.name in self.fail:
            return ToolResult(status=ToolStatus.FAILURE, error="build exploded")

        if command == "npm run build":
            dist = working_dir / "dist"
            dist.mkdir(exist_ok=True)
            (dist / "index.js").write_text(f"// built {working_dir.name}\n")
        return ToolResult(status=ToolStatus.SUCCESS)

    @property
    def built(self) -> list[str]:
        return [cwd.name for command, cwd in self.calls if command == "npm run build"]


class FakeSession:
    """Records subscriptions; ``start`` replays a scripted event sequence."""

    def __init__(self, script=(), error=None):
        self.script = list(script)
        self.error = error
        self.listeners = {}

    def subscribe(self, event, callback):
        self.listeners.setdefault(SupervisorEvent(event), []).append(callback)

    def emit(self, event, *args):
        for callback in self.listeners.get(SupervisorEvent(event), []):
            callback(*args)

    def start(self):
        if self.error is not None:
            raise self.error
        for event, *args in self.script:
            self.emit(event, *args)


def snapshot(root: Path) -> dict:
    """Describe a directory tree without following symlinks."""
    result = {}
    for dirpath, dirnames, filenames in os.walk(root):
        for name in sorted(dirnames + filenames):
            path = Path(dirpath) / name
            rel = path.relative_to(root).as_posix()
            if path.is_symlink():
                result[rel] = ("link", os.readlink(path))
            elif path.is_dir():
                result[rel] = ("dir",)
            else:
                result[rel] = ("file", path.read_text(encoding="utf-8"))
    return result


@pytest.fixture
def fake_runner():
    return FakeBuildRunner()


@pytest.fixture
def tree_snapshot():
    return snapshot


@pytest.fixture
def project(tmp_path):
    """A host project with `alpha` (one level) and `nested/beta` (two levels).

    Both extensions carry editable sources; neither is built yet.
    """
    root = tmp_path / "project"
    extensions = root / "src" / "extensions"

    write_json(
        root / "package.json",
        {
            "name": "host-app",
            "version": "3.1.0",
            "type": "module",
            "scripts": {"build:ts": "tsc"},
            "dependencies": {"@directus/api": "^20.0.0"},
        },
    )

    alpha = extensions / "alpha"
    write_json(alpha / "package.json", {"name": "alpha"})
    (alpha / "src").mkdir(parents=True)
    (alpha / "src" / "index.ts").write_text("export default {};\n")

    beta = extensions / "nested" / "beta"
    write_json(
        beta / "package.json",
        {
            "name": "beta",
            "version": "2.0.0",
            "scripts": {"build": "directus-extension build"},
            "devDependencies": {"@directus/extensions-sdk": "^11.0.0"},
            "directus:extension": {"type": "hook", "path": "dist/index.js", "host": "^10.0.0"},
        },
    )
    (beta / "src").mkdir(parents=True)
    (beta / "src" / "index.ts").write_text("export default () => {};\n")
    (beta / "README.md").write_text("# beta\n")

    return root


@pytest.fixture
def extensions_root(project):
    return project / "src" / "extensions"


@pytest.fixture
def requires_symlinks(tmp_path):
    """Skip when the platform cannot create directory symlinks."""
    target = tmp_path / "symlink-probe-target"
    target.mkdir()
    try:
        os.symlink(target, tmp_path / "symlink-probe", target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("Directory symlinks are not supported here")
