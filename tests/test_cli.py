import json

import pytest

from bloodmatch.cli import main


@pytest.fixture
def directory_file(tmp_path, directory_payload):
    path = tmp_path / "directory.json"
    path.write_text(json.dumps(directory_payload), encoding="utf-8")
    return str(path)


def test_cli_nearby_blood_banks_json(directory_file, capsys):
    code = main(
        ["--directory", directory_file, "nearby-bloodbanks", "--lat", "12.9716", "--lon", "77.5946", "--blood-type", "o+", "--json"]
    )

    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert [r["blood_bank"]["id"] for r in data["results"]] == ["bb-central", "bb-jayanagar"]


def test_cli_nearby_blood_banks_text(directory_file, capsys):
    code = main(["--directory", directory_file, "nearby-bloodbanks", "--lat", "12.9716", "--lon", "77.5946", "--blood-type", "O+"])

    assert code == 0
    out = capsys.readouterr().out
    assert "City Central" in out
    assert "in stock" in out


def test_cli_incoming_requests(directory_file, capsys):
    code = main(["--directory", directory_file, "incoming-requests", "--donor-id", "d-near"])

    assert code == 0
    out = capsys.readouterr().out
    assert "2 request(s)" in out
    assert "r-koramangala" in out


def test_cli_unknown_donor_exits_with_error(directory_file, capsys):
    code = main(["--directory", directory_file, "incoming-requests", "--donor-id", "nobody"])

    assert code == 2
    assert "nobody" in capsys.readouterr().err


def test_cli_invalid_radius_exits_with_error(directory_file, capsys):
    code = main(
        [
            "--directory",
            directory_file,
            "critical-donors",
            "--lat",
            "12.9279",
            "--lon",
            "77.6271",
            "--blood-type",
            "O+",
            "--radius-km",
            "-5",
        ]
    )

    assert code == 2
    assert "radius_km" in capsys.readouterr().err


def test_cli_critical_donors_json(directory_file, capsys):
    code = main(
        [
            "--directory",
            directory_file,
            "critical-donors",
            "--lat",
            "12.9279",
            "--lon",
            "77.6271",
            "--blood-type",
            "O+",
            "--radius-km",
            "15",
            "--json",
        ]
    )

    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert [item["donor"]["id"] for item in data["donors"]] == ["d-near", "d-north"]


@pytest.mark.parametrize("command", ["critical-donors", "nearby-bloodbanks"])
def test_cli_out_of_range_origin_exits_with_error(directory_file, capsys, command):
    code = main(["--directory", directory_file, command, "--lat", "200", "--lon", "77", "--blood-type", "O+"])

    assert code == 2
    assert "out of range" in capsys.readouterr().err
