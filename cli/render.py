from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _temperature(value: Any) -> str:
    if isinstance(value, (int, float)):
        return f"{value:.1f}"
    return "-"


def render_weather(reports: List[Dict[str, Any]]) -> None:
    echo_heading("Current Weather")
    if not reports:
        typer.echo("No observations recorded yet.")
        return
    for report in reports:
        line = (
            f"{report.get('city')}: {_temperature(report.get('temperature'))} "
            f"({report.get('dominant_condition')}) "
            f"avg={_temperature(report.get('avg_temperature'))} "
            f"updated={report.get('last_updated')}"
        )
        if report.get("alert"):
            typer.secho(f"{line} [ALERT]", fg=typer.colors.RED)
        else:
            typer.echo(line)


def render_summary(payload: Dict[str, Any]) -> None:
    echo_heading("Daily Summary")
    echo_key_values(
        [
            ("city", payload.get("city")),
            ("day", payload.get("day")),
            ("avg_temperature", _temperature(payload.get("avg_temperature"))),
            ("max_temperature", _temperature(payload.get("max_temperature"))),
            ("min_temperature", _temperature(payload.get("min_temperature"))),
            ("dominant_condition", payload.get("dominant_condition")),
            ("sample_count", payload.get("sample_count")),
        ]
    )


def render_cycle(index: int, sampled: List[str], rolled_up: List[str], failures: Dict[str, str]) -> None:
    echo_heading(f"Cycle {index}")
    echo_key_values(
        [
            ("sampled", ", ".join(sampled) or "-"),
            ("rolled_up", ", ".join(rolled_up) or "-"),
        ]
    )
    for entity_id, reason in failures.items():
        typer.secho(f"  - {entity_id}: {reason}", fg=typer.colors.YELLOW)
