"""End-to-end tests for the render pipeline with a fake HTTP session."""

from __future__ import annotations

import json

from conftest import FakeResponse, FakeSession

from choromap.render import build_components, format_render_lines, run_render_legend, run_render_map


class TestRunRenderMap:
    def test_success_writes_all_artifacts(self, app_config, sample_geojson):
        session = FakeSession(FakeResponse(200, sample_geojson))
        report = run_render_map(app_config, session=session)

        assert report.ok, report.errors
        assert app_config.output.map_png.exists()
        assert app_config.output.details_html.exists()
        assert report.summary["features_total"] == 3
        assert report.summary["features_without_data"] == 1

        popups = json.loads(app_config.output.popups_json.read_text(encoding="utf-8"))
        assert [item["country"] for item in popups] == ["Venezuela", "Colombia", "Ecuador"]
        assert popups[0]["popup"] == (
            "<strong>Venezuela</strong><br>"
            "<strong>Región:</strong> Zulia<br>"
            "<strong>Valor:</strong> 57,30"
        )
        assert popups[2]["style"]["fill_color"] == "#cccccc"

    def test_http_failure_still_writes_map(self, app_config):
        report = run_render_map(app_config, session=FakeSession(FakeResponse(500, None)))
        assert not report.ok
        assert "500" in report.errors[0]
        assert app_config.output.map_png.exists()
        assert not app_config.output.popups_json.exists()

    def test_overrides(self, app_config, sample_geojson, tmp_path):
        session = FakeSession(FakeResponse(200, sample_geojson))
        target = tmp_path / "custom" / "map.png"
        report = run_render_map(
            app_config,
            url="https://example.org/other.geojson",
            output_path=target,
            session=session,
        )
        assert session.calls[0][0] == "https://example.org/other.geojson"
        assert report.output_path == target
        assert target.exists()

    def test_out_of_domain_values_warn(self, app_config):
        payload = {"features": [{"geometry": None, "properties": {"country": "A", "value": "250"}}]}
        report = run_render_map(app_config, session=FakeSession(FakeResponse(200, payload)))
        assert report.ok
        assert report.summary["features_out_of_domain"] == 1
        assert any("outside [0, 100]" in warning for warning in report.warnings)
        assert any("no geometry" in warning for warning in report.warnings)

    def test_report_lines(self, app_config, sample_geojson):
        report = run_render_map(app_config, session=FakeSession(FakeResponse(200, sample_geojson)))
        lines = format_render_lines(report)
        assert lines[-1] == "[OK] Map rendered with no errors."
        assert any(line.startswith("[INFO] Render summary:") for line in lines)


def test_components_share_one_scale(app_config):
    components = build_components(app_config)
    assert components.styler.scale is components.scale
    assert components.legend.scale is components.scale


def test_run_render_legend(app_config):
    path = run_render_legend(app_config)
    assert path == app_config.output.legend_png
    assert path.exists()
