"""Tests for header schema validation and duplicate detection."""

from __future__ import annotations

from typing import Any

from bondlint.core.manifest.models import (
    AgentHeader,
    BodyRef,
    CommandHeader,
    EntityKind,
    EntityManifest,
    SkillHeader,
)
from bondlint.core.manifest.schema import (
    find_duplicate_names,
    format_loc,
    salvage_links,
    validate_manifest,
)
from bondlint.core.report.models import Category, Severity


def _manifest(kind: EntityKind, path: str, **raw: Any) -> EntityManifest:
    raw.setdefault("description", "test manifest")
    name = raw.get("name")
    return EntityManifest(
        kind=kind,
        name=name if isinstance(name, str) else "",
        source_path=path,
        raw_header=raw,
        body_ref=BodyRef(path=path, offset=0, length=0),
    )


class TestFormatLoc:
    def test_dotted(self) -> None:
        assert format_loc(("parameter_validation", "query", "min_length")) == (
            "parameter_validation.query.min_length"
        )

    def test_list_index(self) -> None:
        assert format_loc(("skills", 2)) == "skills[2]"


class TestValidateManifest:
    def test_valid_agent(self) -> None:
        manifest = _manifest(
            EntityKind.AGENT,
            "agents/a.md",
            name="a",
            model="sonnet",
            tools="Read, Write, Bash",
            skills=["s1", "s2"],
        )
        checked, findings = validate_manifest(manifest)
        assert findings == []
        assert checked.schema_valid
        assert isinstance(checked.header, AgentHeader)
        assert checked.header.tools == ["Read", "Write", "Bash"]
        assert checked.links.skills == ["s1", "s2"]

    def test_valid_skill(self) -> None:
        manifest = _manifest(
            EntityKind.SKILL,
            "skills/s1.md",
            name="s1",
            bonded_agent="a",
            bond_type="PRIMARY_BOND",
            atomic_operations=["parse", "emit"],
            parameter_validation={"query": {"type": "string", "required": True, "min_length": 1}},
            retry_logic={"max_attempts": 3, "backoff": "exponential", "initial_delay_ms": 100},
            exit_codes={"success": 0, "invalid_input": 2},
        )
        checked, findings = validate_manifest(manifest)
        assert findings == []
        assert isinstance(checked.header, SkillHeader)
        assert checked.header.parameter_validation["query"].min_length == 1
        assert checked.links.bonded_agent == "a"
        assert checked.links.bond_type == "PRIMARY_BOND"

    def test_valid_command(self) -> None:
        manifest = _manifest(
            EntityKind.COMMAND,
            "commands/deploy.md",
            name="deploy",
            allowed_tools="Bash(git:*), Read",
            agents=["a"],
        )
        checked, findings = validate_manifest(manifest)
        assert findings == []
        assert isinstance(checked.header, CommandHeader)
        assert checked.header.allowed_tools == ["Bash(git:*)", "Read"]
        assert checked.links.agents == ["a"]

    def test_field_path_in_message(self) -> None:
        manifest = _manifest(
            EntityKind.SKILL,
            "skills/foo.md",
            name="foo",
            parameter_validation={"query": {"type": "string", "min_length": "long"}},
        )
        checked, findings = validate_manifest(manifest)
        assert not checked.schema_valid
        assert checked.header is None
        assert len(findings) == 1
        finding = findings[0]
        assert finding.category is Category.SCHEMA_ERROR
        assert finding.severity is Severity.ERROR
        assert finding.subject_path == "skills/foo.md"
        assert finding.message.startswith("skills/foo.parameter_validation.query.min_length:")

    def test_all_errors_collected_in_one_pass(self) -> None:
        manifest = _manifest(
            EntityKind.SKILL,
            "skills/foo.md",
            name="foo",
            bond_type="TIGHT_BOND",
            atomic_operations="parse",
            exit_codes={"ok": "zero"},
            retry_logic={"backoff": "fixed"},
        )
        _, findings = validate_manifest(manifest)
        messages = [f.message for f in findings]
        assert any(".bond_type:" in m for m in messages)
        assert any(".atomic_operations:" in m for m in messages)
        assert any(".exit_codes.ok:" in m for m in messages)
        assert any(".retry_logic.max_attempts:" in m for m in messages)
        assert any(".retry_logic.initial_delay_ms:" in m for m in messages)

    def test_strict_types_no_coercion(self) -> None:
        manifest = _manifest(
            EntityKind.SKILL,
            "skills/foo.md",
            name="foo",
            retry_logic={"max_attempts": "3", "backoff": "fixed", "initial_delay_ms": 0},
        )
        _, findings = validate_manifest(manifest)
        assert len(findings) == 1
        assert "retry_logic.max_attempts" in findings[0].message

    def test_exit_code_out_of_range(self) -> None:
        manifest = _manifest(EntityKind.COMMAND, "commands/c.md", name="c", exit_codes={"boom": 300})
        _, findings = validate_manifest(manifest)
        assert len(findings) == 1
        assert "commands/c.exit_codes.boom" in findings[0].message

    def test_missing_name_and_description(self) -> None:
        manifest = EntityManifest(
            kind=EntityKind.AGENT,
            name="",
            source_path="agents/x.md",
            raw_header={},
            body_ref=BodyRef(path="agents/x.md", offset=0, length=0),
        )
        _, findings = validate_manifest(manifest)
        messages = sorted(f.message for f in findings)
        assert messages[0].startswith("agents/?.description:")
        assert messages[1].startswith("agents/?.name:")

    def test_empty_name_rejected(self) -> None:
        manifest = _manifest(EntityKind.AGENT, "agents/x.md", name="")
        _, findings = validate_manifest(manifest)
        assert len(findings) == 1
        assert ".name:" in findings[0].message

    def test_unknown_fields_ignored(self) -> None:
        manifest = _manifest(
            EntityKind.AGENT, "agents/a.md", name="a", color="blue", sasmp_version="1.3.0"
        )
        _, findings = validate_manifest(manifest)
        assert findings == []

    def test_invalid_manifest_keeps_salvaged_links(self) -> None:
        manifest = _manifest(
            EntityKind.AGENT,
            "agents/a.md",
            name="a",
            skills=["s1", 5, "s2"],
            retry_config="often",
        )
        checked, findings = validate_manifest(manifest)
        assert findings
        assert not checked.schema_valid
        assert checked.links.skills == ["s1", "s2"]


class TestSalvageLinks:
    def test_ignores_badly_typed_fields(self) -> None:
        links = salvage_links({"skills": "s1", "bonded_agent": 3, "agents": ["x", ""]})
        assert links.skills == []
        assert links.bonded_agent is None
        assert links.agents == ["x"]


class TestFindDuplicateNames:
    def test_duplicates_reported_not_overwritten(self) -> None:
        first = _manifest(EntityKind.SKILL, "skills/a/SKILL.md", name="dup")
        second = _manifest(EntityKind.SKILL, "skills/b/SKILL.md", name="dup")
        third = _manifest(EntityKind.SKILL, "skills/c/SKILL.md", name="dup")

        findings = find_duplicate_names([first, second, third])
        assert [f.subject_path for f in findings] == ["skills/b/SKILL.md", "skills/c/SKILL.md"]
        assert all(f.category is Category.DUPLICATE_NAME for f in findings)
        assert all("skills/a/SKILL.md" in f.message for f in findings)

    def test_same_name_across_kinds_is_fine(self) -> None:
        agent = _manifest(EntityKind.AGENT, "agents/api.md", name="api")
        skill = _manifest(EntityKind.SKILL, "skills/api.md", name="api")
        assert find_duplicate_names([agent, skill]) == []

    def test_unnamed_manifests_skipped(self) -> None:
        a = _manifest(EntityKind.SKILL, "skills/a.md")
        b = _manifest(EntityKind.SKILL, "skills/b.md")
        assert find_duplicate_names([a, b]) == []
