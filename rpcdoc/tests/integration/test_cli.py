from __future__ import annotations

import json

import pytest

from rpcdoc.cli import build_parser, load_target, main, run
from rpcdoc.rpc.server import RPCServer
from rpcdoc.utils.errors import ConfigurationError

TARGET = "rpcdoc.tests.fixtures.sample_api:build_server"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "RPCDOC_SCHEMA_MUTATIONS",
        "RPCDOC_METHOD_BLACKLIST",
        "RPCDOC_STRICT_MUTATIONS",
        "RPCDOC_DOCUMENT_PATH",
    ):
        monkeypatch.delenv(name, raising=False)


def _run(*argv):
    return run(build_parser().parse_args(list(argv)))


def test_load_target_calls_factories():
    assert isinstance(load_target(TARGET), RPCServer)
    for bad in ("no_colon", "rpcdoc.missing_module:x", "rpcdoc.cli:missing", "rpcdoc.cli:logger"):
        with pytest.raises(ConfigurationError):
            load_target(bad)


def test_writes_the_document(tmp_path):
    output = tmp_path / "openrpc.json"
    assert _run("--target", TARGET, "--output", str(output), "--validate") == 0
    document = json.loads(output.read_text(encoding="utf-8"))
    names = [method["name"] for method in document["methods"]]
    assert names[0] == "admin_node_info"
    assert document["info"]["version"].startswith("2.1.0-")


def test_prints_to_stdout(capsys):
    assert _run("--target", TARGET, "--blacklist", "^(admin|chain|public|rpc)_") == 0
    document = json.loads(capsys.readouterr().out)
    assert [method["name"] for method in document["methods"]] == ["foo_bar", "notify"]


def test_mutations_from_the_command_line(tmp_path):
    output = tmp_path / "openrpc.json"
    argv = ["--target", TARGET, "--output", str(output)]
    argv += ["--mutation", "expand", "--mutation", "remove-definitions"]
    assert _run(*argv) == 0
    document = json.loads(output.read_text(encoding="utf-8"))
    peers = next(method for method in document["methods"] if method["name"] == "admin_peers")
    assert "definitions" not in json.dumps(peers)


def test_prebuilt_document(tmp_path, capsys):
    source = tmp_path / "prebuilt.json"
    source.write_text(json.dumps({"openrpc": "1.2.6", "methods": []}), encoding="utf-8")
    assert _run("--target", TARGET, "--document", str(source)) == 0
    assert json.loads(capsys.readouterr().out) == {"openrpc": "1.2.6", "methods": []}


def test_invalid_prebuilt_document_fails_validation(tmp_path):
    source = tmp_path / "prebuilt.json"
    source.write_text(json.dumps({"openrpc": "1.2.6"}), encoding="utf-8")
    assert _run("--target", TARGET, "--document", str(source), "--validate") == 1


def test_configuration_errors_exit_with_status_two(tmp_path):
    assert _run("--target", TARGET, "--blacklist", "(") == 2
    assert _run("--target", "rpcdoc.missing_module:x") == 2
    assert _run("--target", TARGET, "--document", str(tmp_path / "missing.json")) == 2


def test_main_exits_with_the_run_status(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main(["--target", TARGET, "--output", str(tmp_path / "out.json")])
    assert excinfo.value.code == 0
