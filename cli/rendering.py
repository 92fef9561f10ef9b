"""Utilities for rendering Context Packs in the CLI."""

from __future__ import annotations

from typing import List

from contextpack.models import ContextPack, TextField

_RULE = "=" * 72


def _confidence(field: TextField) -> str:
    return f"{field.confidence.value:.0%}"


def _render_field(label: str, field: TextField) -> List[str]:
    if field.is_empty:
        reason = field.confidence.reason or "not found"
        return [f"{label}: (empty: {reason})"]
    lines = [f"{label} [{_confidence(field)}]: {field.content}"]
    lines += [f"    source: {c.reference}" for c in field.citations]
    return lines


def _render_list(label: str, fields: List[TextField], indent: str = "") -> List[str]:
    if not fields:
        return [f"{indent}{label}: (none)"]
    lines = [f"{indent}{label}:"]
    for field in fields:
        lines.append(f"{indent}  - {field.content} [{_confidence(field)}]")
    return lines


def render_pack(pack: ContextPack) -> str:
    """Render *pack* as readable plain text with confidence percentages.

    Args:
        pack: The pack to render.

    Returns:
        Multi-line string, ready for ``typer.echo``.
    """
    lines = [
        _RULE,
        f"{pack.company_name}  ({pack.company_url})",
        f"id={pack.id}  version={pack.version}  created={pack.created_at.isoformat()}",
        _RULE,
    ]
    lines += _render_field("Vision", pack.vision)
    lines += _render_field("Mission", pack.mission)
    lines += _render_list("Values", pack.values)

    lines.append("")
    lines.append("Ideal customers:")
    if not pack.icp.segments:
        lines.append("  (none)")
    for segment in pack.icp.segments:
        lines.append(
            f"  * {segment.name} [{_confidence(segment.description)}]: "
            f"{segment.description.content}"
        )
        for pain in segment.pain_points:
            lines.append(f"      pain: {pain.content}")
    lines += ["  " + line for line in _render_field("Evolution", pack.icp.evolution)]

    lines.append("")
    lines += _render_list("Revenue drivers", pack.business_model.revenue_drivers)
    lines += _render_field("Pricing", pack.business_model.pricing_model)
    lines += _render_list("Key metrics", pack.business_model.key_metrics)

    lines.append("")
    lines += _render_list("Jobs to be done", pack.product.jobs_to_be_done)
    lines += _render_list("Key features", pack.product.key_features)

    if pack.version != "v0":
        lines.append("")
        lines += _render_list("Priorities", pack.decision_rules.priorities)
        lines += _render_list("Anti-patterns", pack.decision_rules.anti_patterns)
        lines += _render_list("Engineering KPIs", pack.engineering_kpis)

    lines.append(_RULE)
    return "\n".join(lines)
