"""
Tests for runtime linking.

The runtime extensions directory is rebuilt on every pass: it always holds
exactly the currently discovered extensions, and relinking never touches the
linked sources.
"""

import os
import shutil

import pytest

from conftest import FakeBuildRunner, read_json
from extensions.builder import ExtensionBuilder
from extensions.linker import (
    CompiledLinkStrategy,
    DevLinker,
    SourceLinkStrategy,
    link,
    strategy_for,
)
from schemas.descriptor import EXTENSION_KEY

pytestmark = pytest.mark.usefixtures("requires_symlinks")


@pytest.fixture
def runtime_root(project):
    return project / "extensions"


class TestSourceLinking:
    """Development mode links editable sources."""

    def test_links_every_target(self, extensions_root, runtime_root):
        report = link(extensions_root, runtime_root, SourceLinkStrategy())

        assert report.linked == ["alpha", "nested/beta"]
        assert report.skipped == []
        assert report.strategy == "source"

        alpha_link = runtime_root / "alpha" / "src"
        assert alpha_link.is_symlink()
        assert os.path.samefile(alpha_link, extensions_root / "alpha" / "src")
        assert (runtime_root / "nested" / "beta" / "src" / "index.ts").exists()

    def test_rewritten_descriptor_points_at_source(self, extensions_root, runtime_root):
        link(extensions_root, runtime_root, SourceLinkStrategy())

        descriptor_path = runtime_root / "nested" / "beta" / "package.json"
        assert not descriptor_path.is_symlink()
        descriptor = read_json(descriptor_path)
        assert descriptor["name"] == "beta"
        assert descriptor[EXTENSION_KEY] == {
            "type": "hook",
            "path": "src/index.ts",
            "host": "^10.0.0",
            "source": "src/index.ts",
        }

    def test_source_descriptor_never_modified(self, extensions_root, runtime_root):
        source_descriptor = extensions_root / "nested" / "beta" / "package.json"
        before = source_descriptor.read_text()

        link(extensions_root, runtime_root, SourceLinkStrategy())

        assert source_descriptor.read_text() == before

    def test_missing_source_skipped(self, extensions_root, runtime_root, caplog):
        shutil.rmtree(extensions_root / "alpha" / "src")

        report = link(extensions_root, runtime_root, SourceLinkStrategy())

        assert report.linked == ["nested/beta"]
        assert [s.name for s in report.skipped] == ["alpha"]
        assert "Src path does not exist" in report.skipped[0].reason
        assert not (runtime_root / "alpha" / "src").exists()
        assert "Skipping extension alpha" in caplog.text

    def test_invalid_descriptor_skips_only_that_target(self, extensions_root, runtime_root):
        (extensions_root / "alpha" / "package.json").write_text("{broken")

        report = link(extensions_root, runtime_root, SourceLinkStrategy())

        assert report.linked == ["nested/beta"]
        assert report.skipped[0].name == "alpha"
        assert not (runtime_root / "alpha").exists()


    def test_target_nested_in_linked_source_skipped(self, extensions_root, runtime_root):
        inner = extensions_root / "alpha" / "src" / "package.json"
        inner.write_text('{"name": "inner"}')
        (inner.parent / "src").mkdir()

        report = link(extensions_root, runtime_root, SourceLinkStrategy())

        assert report.linked == ["alpha", "nested/beta"]
        assert [s.name for s in report.skipped] == ["alpha/src"]
        assert "inside a linked directory" in report.skipped[0].reason
        assert read_json(inner) == {"name": "inner"}
        assert os.listdir(inner.parent / "src") == []


class TestIdempotence:
    def test_two_passes_identical(self, extensions_root, runtime_root, tree_snapshot):
        link(extensions_root, runtime_root, SourceLinkStrategy())
        first = tree_snapshot(runtime_root)
        link(extensions_root, runtime_root, SourceLinkStrategy())
        assert tree_snapshot(runtime_root) == first

    def test_removed_target_leaves_nothing_behind(self, extensions_root, runtime_root):
        link(extensions_root, runtime_root, SourceLinkStrategy())
        shutil.rmtree(extensions_root / "nested")

        report = link(extensions_root, runtime_root, SourceLinkStrategy())

        assert report.linked == ["alpha"]
        assert sorted(p.name for p in runtime_root.iterdir()) == ["alpha"]

    def test_renamed_target_follows(self, extensions_root, runtime_root):
        link(extensions_root, runtime_root, SourceLinkStrategy())
        (extensions_root / "alpha").rename(extensions_root / "gamma")

        link(extensions_root, runtime_root, SourceLinkStrategy())

        assert sorted(p.name for p in runtime_root.iterdir()) == ["gamma", "nested"]

    def test_relinking_keeps_sources(self, extensions_root, runtime_root):
        link(extensions_root, runtime_root, SourceLinkStrategy())
        link(extensions_root, runtime_root, SourceLinkStrategy())
        assert (extensions_root / "alpha" / "src" / "index.ts").exists()
        assert (extensions_root / "nested" / "beta" / "src" / "index.ts").exists()

    def test_stale_entries_cleared(self, extensions_root, runtime_root):
        (runtime_root / "ghost").mkdir(parents=True)
        (runtime_root / "ghost" / "package.json").write_text("{}")

        link(extensions_root, runtime_root, SourceLinkStrategy())

        assert not (runtime_root / "ghost").exists()


class TestMissingSourceRoot:
    def test_runtime_root_recreated_empty(self, tmp_path):
        runtime_root = tmp_path / "extensions"
        (runtime_root / "old").mkdir(parents=True)

        report = link(tmp_path / "missing", runtime_root, SourceLinkStrategy())

        assert report.linked == []
        assert runtime_root.is_dir()
        assert list(runtime_root.iterdir()) == []


class TestCompiledLinking:
    """Production-like mode links compiled output, building when needed."""

    def test_builds_missing_dist_then_links(self, extensions_root, runtime_root):
        runner = FakeBuildRunner()
        (extensions_root / "alpha" / "dist").mkdir()
        (extensions_root / "alpha" / "dist" / "index.js").write_text("// prebuilt\n")

        report = DevLinker(
            extensions_root, runtime_root, CompiledLinkStrategy(ExtensionBuilder(runner=runner))
        ).link()

        assert report.linked == ["alpha", "nested/beta"]
        assert runner.built == ["beta"]
        assert (runtime_root / "alpha" / "dist").is_symlink()
        assert (runtime_root / "nested" / "beta" / "dist" / "index.js").exists()

    def test_writes_sanitized_descriptor(self, extensions_root, runtime_root):
        strategy = CompiledLinkStrategy(ExtensionBuilder(runner=FakeBuildRunner()))
        link(extensions_root, runtime_root, strategy)

        descriptor = read_json(runtime_root / "nested" / "beta" / "package.json")
        assert descriptor["version"] == "2.0.0"
        assert descriptor["files"] == ["dist"]
        assert descriptor[EXTENSION_KEY]["path"] == "dist/index.js"
        assert "scripts" not in descriptor
        assert "devDependencies" not in descriptor

    def test_build_failure_leaves_target_unlinked(self, extensions_root, runtime_root):
        strategy = CompiledLinkStrategy(ExtensionBuilder(runner=FakeBuildRunner(fail={"beta"})))

        report = link(extensions_root, runtime_root, strategy)

        assert report.linked == ["alpha"]
        assert report.skipped[0].name == "nested/beta"
        assert report.skipped[0].reason.startswith("Build failed")
        assert not (runtime_root / "nested" / "beta" / "dist").exists()

    def test_build_without_output_skipped(self, extensions_root, runtime_root):
        runner = FakeBuildRunner()
        builder = ExtensionBuilder(command="npm run noop", runner=runner)

        report = link(extensions_root, runtime_root, CompiledLinkStrategy(builder))

        assert report.linked == []
        assert all("no dist directory" in s.reason for s in report.skipped)


class TestStrategySelection:
    def test_development(self):
        assert isinstance(strategy_for(False), SourceLinkStrategy)

    def test_production(self):
        builder = ExtensionBuilder(runner=FakeBuildRunner())
        strategy = strategy_for(True, builder)
        assert isinstance(strategy, CompiledLinkStrategy)
        assert strategy.builder is builder
