"""End-to-end tests for a full validation run over a manifest tree."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from bondlint.config import ValidatorSettings
from bondlint.core.report.models import Category, Severity
from bondlint.errors import ManifestRootError
from bondlint.validator import validate_tree

if TYPE_CHECKING:
    from pathlib import Path

    from tests.conftest import WriteManifest


@pytest.fixture
def three_files(write_manifest: WriteManifest) -> None:
    write_manifest("agents/a.md", name="a", skills=["s1"])
    write_manifest("skills/s1.md", name="s1", bonded_agent="a")
    write_manifest("skills/s2.md", name="s2")


class TestEndToEnd:
    @pytest.mark.usefixtures("three_files")
    def test_reference_scenario(self, plugin_root: Path) -> None:
        run = validate_tree(plugin_root)
        findings = run.report.findings

        assert len(findings) == 1
        assert findings[0].category is Category.ORPHAN_SKILL
        assert findings[0].severity is Severity.WARNING
        assert findings[0].subject_path == "skills/s2.md"
        assert run.report.exit_code == 0

    @pytest.mark.usefixtures("three_files")
    def test_one_broken_bond_flips_exit_code(
        self, plugin_root: Path, write_manifest: WriteManifest
    ) -> None:
        write_manifest("skills/s3.md", name="s3", bonded_agent="ghost")

        run = validate_tree(plugin_root)
        broken = [f for f in run.report.findings if f.category is Category.BROKEN_BOND]
        assert len(broken) == 1
        assert "'s3'" in broken[0].message
        assert "'ghost'" in broken[0].message
        assert run.report.exit_code == 4

    @pytest.mark.usefixtures("three_files")
    def test_reports_are_byte_identical(self, plugin_root: Path, write_manifest: WriteManifest) -> None:
        write_manifest("skills/s3.md", name="s3", bonded_agent="ghost")
        write_manifest("agents/b.md", name="b", skills=["missing"], retry_config={"max_attempts": 0})

        first = validate_tree(plugin_root, ValidatorSettings(workers=8)).report
        second = validate_tree(plugin_root, ValidatorSettings(workers=1)).report
        assert first.render("json") == second.render("json")
        assert first.render("text") == second.render("text")

    def test_schema_broken_manifest_still_in_graph(
        self, plugin_root: Path, write_manifest: WriteManifest
    ) -> None:
        write_manifest("agents/a.md", name="a", skills=["s1"], tools=42)
        write_manifest("skills/s1.md", name="s1", bonded_agent="a")

        run = validate_tree(plugin_root)
        categories = [f.category for f in run.report.findings]
        assert categories == [Category.SCHEMA_ERROR]
        assert run.report.exit_code == 3
        node = next(n for n in run.graph.nodes if n.ref.name == "a")
        assert node.schema_valid is False

    def test_malformed_yaml_dropped_from_graph(self, plugin_root: Path, write_manifest: WriteManifest) -> None:
        write_manifest("skills/s1.md", name="s1", bonded_agent="a")
        (plugin_root / "agents").mkdir()
        (plugin_root / "agents" / "a.md").write_text("---\nname: a\nskills: [s1\n---\n")

        run = validate_tree(plugin_root)
        categories = sorted(f.category.value for f in run.report.findings)
        assert categories == ["BrokenBond", "SchemaError"]
        assert run.report.exit_code == 1

    def test_duplicate_names(self, plugin_root: Path, write_manifest: WriteManifest) -> None:
        write_manifest("agents/a.md", name="a")
        write_manifest("agents/a-copy.md", name="a")

        run = validate_tree(plugin_root)
        assert [f.category for f in run.report.findings] == [Category.DUPLICATE_NAME]
        assert run.report.findings[0].subject_path == "agents/a.md"
        assert run.report.exit_code == 6

    def test_circular_dependency(self, plugin_root: Path, write_manifest: WriteManifest) -> None:
        write_manifest("agents/a1.md", name="a1", skills=["s1"])
        write_manifest("skills/s1.md", name="s1", bonded_agent="a2")
        write_manifest("agents/a2.md", name="a2", skills=["s2"])
        write_manifest("skills/s2.md", name="s2", bonded_agent="a1")

        run = validate_tree(plugin_root)
        cycles = [f for f in run.report.findings if f.category is Category.CIRCULAR_DEPENDENCY]
        assert len(cycles) == 1
        assert "agent:a1" in cycles[0].message
        assert "agent:a2" in cycles[0].message
        assert run.report.exit_code == 4

    def test_config_errors(self, plugin_root: Path, write_manifest: WriteManifest) -> None:
        write_manifest(
            "skills/s1/SKILL.md",
            name="s1",
            bondedAgent="a",
            retryLogic={"maxAttempts": 3, "backoff": "exponential", "initialDelayMs": 0},
            parameterValidation={"query": {"type": "number", "minLength": 2}},
        )
        write_manifest("agents/a.md", name="a", skills=["s1"])

        run = validate_tree(plugin_root)
        assert [f.category for f in run.report.findings] == [
            Category.INVALID_RETRY_CONFIG,
            Category.INVALID_PARAMETER_RULE,
        ]
        assert run.report.exit_code == 5

    def test_fail_on_warnings(self, plugin_root: Path, write_manifest: WriteManifest) -> None:
        write_manifest("skills/s2.md", name="s2")
        run = validate_tree(plugin_root, ValidatorSettings(fail_on_warnings=True))
        assert run.report.exit_code == 4

    def test_plain_content_ignored(self, plugin_root: Path) -> None:
        (plugin_root / "README.md").write_text("# Plugin\n\nLearning paths and guides.\n")
        (plugin_root / "docs").mkdir()
        (plugin_root / "docs" / "guide.md").write_text("---\nlayout: page\n---\nGuide\n")

        run = validate_tree(plugin_root)
        assert run.manifests == []
        assert run.report.findings == ()
        assert run.report.exit_code == 0

    def test_missing_root_is_fatal(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestRootError):
            validate_tree(tmp_path / "absent")


class TestOrphanSoundness:
    def test_exactly_one_finding_per_orphan(
        self, plugin_root: Path, write_manifest: WriteManifest
    ) -> None:
        write_manifest("agents/a.md", name="a", skills=["listed"])
        write_manifest("skills/listed.md", name="listed")
        write_manifest("skills/outward.md", name="outward", bonded_agent="a")
        write_manifest("skills/lone1.md", name="lone1")
        write_manifest("skills/lone2.md", name="lone2")

        run = validate_tree(plugin_root)
        orphans = [f.subject_path for f in run.report.findings if f.category is Category.ORPHAN_SKILL]
        assert orphans == ["skills/lone1.md", "skills/lone2.md"]


class TestCyclesFromManifests:
    @pytest.mark.parametrize("declared", [["s1", "s2"], ["s2", "s1"]])
    def test_loop_through_confirmed_bond(
        self, plugin_root: Path, write_manifest: WriteManifest, declared: list[str]
    ) -> None:
        write_manifest("agents/a.md", name="a", skills=declared)
        write_manifest("agents/b.md", name="b", skills=["s1"])
        write_manifest("skills/s1.md", name="s1", bonded_agent="a")
        write_manifest("skills/s2.md", name="s2", bonded_agent="b")

        run = validate_tree(plugin_root)
        assert [f.category for f in run.report.findings] == [Category.CIRCULAR_DEPENDENCY]
        assert run.report.findings[0].message == (
            "circular dependency: agent:a -> skill:s2 -> agent:b -> skill:s1 -> agent:a"
        )
        assert run.report.exit_code == 4

    def test_two_agent_two_skill_loop_in_any_order(
        self, plugin_root: Path, write_manifest: WriteManifest
    ) -> None:
        write_manifest("agents/b.md", name="b", skills=["y"])
        write_manifest("skills/y.md", name="y", bonded_agent="a")
        write_manifest("agents/a.md", name="a", skills=["x"])
        write_manifest("skills/x.md", name="x", bonded_agent="b")

        run = validate_tree(plugin_root)
        cycles = [f for f in run.report.findings if f.category is Category.CIRCULAR_DEPENDENCY]
        assert len(cycles) == 1
        for name in ("agent:a", "agent:b", "skill:x", "skill:y"):
            assert name in cycles[0].message

    def test_agent_with_many_confirmed_bonds_is_acyclic(
        self, plugin_root: Path, write_manifest: WriteManifest
    ) -> None:
        write_manifest("agents/a.md", name="a", skills=["s1", "s2", "s3"])
        for name in ("s1", "s2", "s3"):
            write_manifest(f"skills/{name}.md", name=name, bonded_agent="a")

        run = validate_tree(plugin_root)
        assert run.report.findings == ()


class TestRobustness:
    def test_yaml_boolean_key_is_ignored(self, plugin_root: Path, write_manifest: WriteManifest) -> None:
        write_manifest("agents/a.md", name="a", skills=["s1"])
        (plugin_root / "skills").mkdir()
        (plugin_root / "skills" / "s1.md").write_text(
            "---\nname: s1\ndescription: d\nbonded_agent: a\non: push\n---\nBody\n"
        )

        run = validate_tree(plugin_root)
        assert run.report.findings == ()
        assert run.report.exit_code == 0

    def test_duplicate_bond_does_not_hide_orphan(
        self, plugin_root: Path, write_manifest: WriteManifest
    ) -> None:
        write_manifest("agents/a.md", name="a")
        write_manifest("skills/s1.md", name="s1")
        write_manifest("skills/s1x.md", name="s1", bonded_agent="a")

        run = validate_tree(plugin_root)
        found = sorted((f.subject_path, f.category.value) for f in run.report.findings)
        assert found == [
            ("skills/s1.md", "OrphanSkill"),
            ("skills/s1x.md", "DuplicateName"),
        ]
