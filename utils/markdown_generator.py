"""Markdown report of reachable buildings."""

import os
from datetime import datetime
from typing import Any, Dict, List, Optional

import yaml

from models.building import Building, reachable_buildings
from models.criterion import Criterion


def format_minutes(seconds: int) -> str:
    """Format travel seconds as rounded minutes, e.g. ``17 min``."""
    return f"{round(seconds / 60)} min"


class MarkdownGenerator:
    """Generator for the reachability report with YAML frontmatter."""

    def __init__(self, output_dir: str = "output"):
        """
        Initialize the generator.

        Args:
            output_dir: Directory the report is written to
        """
        self.output_dir = output_dir

    def generate_yaml_frontmatter(
        self,
        criteria: List[Criterion],
        buildings: List[Building],
        run_timestamp: datetime,
    ) -> str:
        """Generate YAML frontmatter describing the run."""
        reachable = reachable_buildings(buildings, criteria)
        frontmatter: Dict[str, Any] = {
            "generated_at": run_timestamp.isoformat(timespec="seconds"),
            "criteria": [
                {
                    "address": c.address,
                    "mode": c.mode.value,
                    "time_minutes": c.time,
                    "color": c.color,
                }
                for c in criteria
            ],
            "buildings_total": len(buildings),
            "buildings_reachable": len(reachable),
            "apartments_reachable": sum(len(b.apartments) for b in reachable),
        }
        return yaml.dump(
            frontmatter, allow_unicode=True, sort_keys=False, default_flow_style=False
        )

    def generate_building_section(self, building: Building, criteria: List[Criterion]) -> str:
        """Markdown section for one building: travel times and apartments."""
        lines = [f"## {building.name}", "", f"**Address:** {building.address}", ""]

        for criterion in criteria:
            duration = building.duration_for(criterion)
            time_str = format_minutes(duration) if duration is not None else "n/a"
            lines.append(
                f"- <span style=\"color: {criterion.color}\">●</span> "
                f"{criterion.mode.label} to {criterion.address}: {time_str} "
                f"(limit {criterion.time} min)"
            )
        lines.append("")

        if building.apartments:
            lines.extend([
                "| Rent | Fees | Deposit | Key money | Plan | Area | Link |",
                "|------|------|---------|-----------|------|------|------|",
            ])
            for apt in building.apartments:
                lines.append(
                    f"| {apt.rent} | {apt.fees or '-'} | {apt.deposit or '-'} | "
                    f"{apt.key_money or '-'} | [{apt.kind}]({apt.plan}) | {apt.area} | "
                    f"[{apt.id}]({apt.url}) |"
                )
            lines.append("")

        return "\n".join(lines)

    def generate_report(
        self,
        criteria: List[Criterion],
        buildings: List[Building],
        run_timestamp: Optional[datetime] = None,
    ) -> str:
        """Full report: frontmatter, header line and one section per reachable building."""
        run_timestamp = run_timestamp or datetime.now()
        reachable = reachable_buildings(buildings, criteria)
        apt_count = sum(len(b.apartments) for b in reachable)

        # Closest first, by summed travel time
        reachable.sort(key=lambda b: sum(b.duration_for(c) or 0 for c in criteria))

        parts = [
            "---",
            self.generate_yaml_frontmatter(criteria, buildings, run_timestamp).rstrip(),
            "---",
            "",
            "# Reachable apartments",
            "",
            f"Listing {apt_count} apartments in {len(reachable)} buildings:",
            "",
        ]
        parts.extend(self.generate_building_section(b, criteria) for b in reachable)
        return "\n".join(parts)

    def save_report(
        self,
        criteria: List[Criterion],
        buildings: List[Building],
        run_timestamp: Optional[datetime] = None,
        filename: str = "reachable.md",
    ) -> str:
        """
        Write the report to disk.

        Returns:
            Path to the written file
        """
        os.makedirs(self.output_dir, exist_ok=True)
        filepath = os.path.join(self.output_dir, filename)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.generate_report(criteria, buildings, run_timestamp))
        return filepath
