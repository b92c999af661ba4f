"""Schema validation of manifest headers.

Validation is total: pydantic collects every error of a header in one
pass, and each one becomes its own ``SchemaError`` finding.  A manifest
that fails validation is kept (flagged ``schema_valid=False``) so the bond
graph can still refer to it by name.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from bondlint.core.manifest.models import (
    HEADER_ADAPTER,
    AgentHeader,
    BondLinks,
    CommandHeader,
    EntityManifest,
    SkillHeader,
)
from bondlint.core.report.models import Category, Finding


def format_loc(loc: tuple[int | str, ...]) -> str:
    """``("parameter_validation", "query", "min_length")`` -> dotted path.

    List indexes render as ``[n]``.
    """
    parts: list[str] = []
    for item in loc:
        if isinstance(item, int):
            parts.append(f"[{item}]")
        else:
            parts.append(f".{item}" if parts else item)
    return "".join(parts)


def validate_manifest(manifest: EntityManifest) -> tuple[EntityManifest, list[Finding]]:
    """Validate *manifest*'s raw header against the schema of its kind.

    Returns a copy carrying the typed header (or ``None``), its bond links,
    and the ``schema_valid`` flag, together with the findings.
    """
    data = {**manifest.raw_header, "kind": manifest.kind.value}
    try:
        header = HEADER_ADAPTER.validate_python(data)
    except ValidationError as exc:
        findings = [
            Finding.error(
                Category.SCHEMA_ERROR,
                manifest.source_path,
                _describe(manifest, error),
            )
            for error in exc.errors(include_url=False)
        ]
        validated = manifest.model_copy(
            update={
                "header": None,
                "links": salvage_links(manifest.raw_header),
                "schema_valid": False,
            }
        )
        return validated, findings

    validated = manifest.model_copy(
        update={"header": header, "links": links_from_header(header), "schema_valid": True}
    )
    return validated, []


def _describe(manifest: EntityManifest, error: Any) -> str:
    # The first loc item is the union tag (``agent``/``skill``/``command``).
    loc = tuple(error["loc"])
    if loc and loc[0] == manifest.kind.value:
        loc = loc[1:]
    path = manifest.subject
    if loc:
        path = f"{path}.{format_loc(loc)}"
    return f"{path}: {error['msg']}"


def links_from_header(header: AgentHeader | SkillHeader | CommandHeader) -> BondLinks:
    if isinstance(header, AgentHeader):
        return BondLinks(skills=list(header.skills))
    if isinstance(header, SkillHeader):
        return BondLinks(bonded_agent=header.bonded_agent, bond_type=header.bond_type)
    return BondLinks(agents=list(header.agents), skills=list(header.skills))


def salvage_links(raw: dict[str, Any]) -> BondLinks:
    """Pull whichever bond fields are well typed out of a broken header."""

    def _names(value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, str) and item]

    def _name(value: Any) -> str | None:
        return value if isinstance(value, str) and value else None

    return BondLinks(
        skills=_names(raw.get("skills")),
        bonded_agent=_name(raw.get("bonded_agent")),
        bond_type=_name(raw.get("bond_type")),
        agents=_names(raw.get("agents")),
    )


def find_duplicate_names(manifests: list[EntityManifest]) -> list[Finding]:
    """One ``DuplicateName`` finding per repeated ``(kind, name)``.

    The first occurrence in discovery order owns the name; every later file
    is reported against it.
    """
    first_seen: dict[tuple[str, str], str] = {}
    findings: list[Finding] = []
    for manifest in manifests:
        if not manifest.name:
            continue
        key = (manifest.kind.value, manifest.name)
        owner = first_seen.setdefault(key, manifest.source_path)
        if owner != manifest.source_path:
            findings.append(
                Finding.error(
                    Category.DUPLICATE_NAME,
                    manifest.source_path,
                    f"{manifest.kind.value} name {manifest.name!r} is already declared by {owner}",
                )
            )
    return findings
