"""Tests for the HTML report and JSON export."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from adapters.json_exporter import export_results_json, load_results_json
from adapters.report_exporter import export_results_html, render_results_html
from core.domain.models import DomainResult, DomainStatus
from core.errors import ExportError

RESULTS = [
    DomainResult(domain="example", tld=".com", status=DomainStatus.TAKEN),
    DomainResult(domain="example", tld=".io", status=DomainStatus.AVAILABLE),
    DomainResult(domain="<script>", tld=".com", status=DomainStatus.ERROR, cause="DNS timeout - try again later"),
]


def test_html_rows_are_sorted() -> None:
    html = render_results_html(results=RESULTS)
    assert html.index("&lt;script&gt;") < html.index("<td>example</td>")


def test_html_contains_summary_and_cells() -> None:
    html = render_results_html(results=RESULTS)
    assert "3 checks: 1 available, 1 taken, 1 errors." in html
    assert 'class="Available"' in html
    assert 'title="DNS timeout - try again later"' in html


def test_html_escapes_labels() -> None:
    html = render_results_html(results=RESULTS)
    assert "<td><script></td>" not in html
    assert "&lt;script&gt;" in html


def test_html_export_writes_file(tmp_path: Path) -> None:
    path = export_results_html(results=RESULTS, output_path=tmp_path / "report.html")
    assert path.read_text(encoding="utf-8").startswith("<!doctype html>")


def test_html_rejects_empty() -> None:
    with pytest.raises(ExportError):
        render_results_html(results=[])


def test_json_export_uses_wire_format(tmp_path: Path) -> None:
    path = export_results_json(results=RESULTS, output_path=tmp_path / "nested" / "results.json")

    data = json.loads(path.read_text(encoding="utf-8"))
    assert [item["status"] for item in data["results"]] == ["Taken", "Available", "Error"]
    assert data["results"][2]["error"] == "DNS timeout - try again later"
    assert "error" not in data["results"][0]


def test_json_round_trip(tmp_path: Path) -> None:
    path = export_results_json(results=RESULTS, output_path=tmp_path / "results.json")
    assert load_results_json(path) == RESULTS


def test_json_rejects_empty(tmp_path: Path) -> None:
    with pytest.raises(ExportError):
        export_results_json(results=[], output_path=tmp_path / "x.json")
