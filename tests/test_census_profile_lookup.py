from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "scripts"))
import census_profile_lookup as cpl  # noqa: E402

import backend.censusly.census_service as census_service  # noqa: E402
from backend.censusly.errors import NetworkFailure, NoDataFound  # noqa: E402


def _install(monkeypatch, failures: dict[str, Exception] | None = None) -> list[str]:  # type: ignore[no-untyped-def]
    failures = failures or {}
    stages: list[str] = []

    async def fake_request_json(client, url, *, params, stage, config):  # type: ignore[no-untyped-def]
        stages.append(stage)
        if stage in failures:
            raise failures[stage]
        query = dict(params)
        codes = query["get"].split(",")
        year = stage.rsplit(":", 1)[1]
        if "in" in query:
            geography = [query["in"].split(":", 1)[1], query["for"].split(":", 1)[1]]
            header = [*codes, "state", "county"]
        else:
            geography = [query["for"].split(":", 1)[1]]
            header = [*codes, "state"]
        return [header, [year] * len(codes) + geography]

    monkeypatch.setattr(census_service, "request_json", fake_request_json)
    return stages


def test_lookup_writes_profile_json(monkeypatch, tmp_path):
    stages = _install(monkeypatch)
    out_file = tmp_path / "dane.json"

    exit_code = cpl.main(
        [
            "--level",
            "county",
            "--fips",
            "025",
            "--state-fips",
            "55",
            "--category",
            "economic",
            "--year",
            "2021",
            "--year",
            "2019",
            "--out",
            str(out_file),
        ]
    )

    assert exit_code == 0
    assert sorted(stages) == ["profile:economic:2019", "profile:economic:2021", "profile:economic:2023"]
    payload = json.loads(out_file.read_text(encoding="utf-8"))
    economic = payload["primary"]["categories"]["economic"]
    assert economic["latest"]["median_household_income"] == "2023"
    assert list(economic["historical"]) == ["2021", "2019"]
    assert payload["table"]["years"] == ["2021", "2019"]
    assert payload["comparison"] is None


def test_lookup_with_comparison(monkeypatch, tmp_path):
    _install(monkeypatch)
    out_file = tmp_path / "compare.json"

    exit_code = cpl.main(
        [
            "--level",
            "state",
            "--fips",
            "55",
            "--year",
            "2022",
            "--compare-level",
            "nation",
            "--out",
            str(out_file),
            "--pretty",
        ]
    )

    assert exit_code == 0
    payload = json.loads(out_file.read_text(encoding="utf-8"))
    assert payload["is_comparing"] is True
    assert payload["comparison"]["location"]["level"] == "nation"
    assert list(payload["comparison"]["categories"]["overview"]["historical"]) == ["2022"]
    assert payload["table"]["rows"][0]["comparison_latest"] == "2,023"


def test_lookup_no_data_exit_code(monkeypatch, tmp_path):
    _install(
        monkeypatch,
        {"profile:overview:2023": NoDataFound("profile:overview:2023", "No rows returned (HTTP 204)")},
    )
    out_file = tmp_path / "zip.json"

    exit_code = cpl.main(["--level", "zip", "--zip", "00000", "--out", str(out_file)])

    assert exit_code == cpl.EXIT_NO_DATA
    assert not out_file.exists()


def test_lookup_upstream_failure_exit_code(monkeypatch, tmp_path):
    _install(
        monkeypatch,
        {"profile:overview:2023": NetworkFailure("profile:overview:2023", "HTTP 503: unavailable")},
    )

    exit_code = cpl.main(["--level", "state", "--fips", "06", "--out", str(tmp_path / "ca.json")])

    assert exit_code == cpl.EXIT_UPSTREAM_FAILURE


@pytest.mark.parametrize(
    "argv",
    [
        ["--level", "county", "--fips", "025"],
        ["--level", "city", "--state-fips", "55"],
        ["--level", "zip"],
        ["--level", "state", "--fips", "55", "--year", "21"],
        ["--level", "state", "--fips", "55", "--compare-level", "county", "--compare-fips", "025"],
        ["--level", "state", "--fips", "55", "--timeout", "0"],
    ],
)
def test_invalid_args_exit_2(argv):
    with pytest.raises(SystemExit) as excinfo:
        cpl.main(argv)

    assert excinfo.value.code == 2


def test_default_output_path():
    parser = cpl.build_parser()
    args = parser.parse_args(["--level", "city", "--fips", "48000", "--state-fips", "55"])

    assert cpl.default_output_path(args) == Path("scripts/out/profile_city_55_48000.json")
