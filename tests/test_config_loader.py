from __future__ import annotations

import json
import textwrap
from pathlib import Path

import pytest
import yaml

from musl_pack.config_loader import (
    dump_service,
    find_service_file,
    load_service_file,
    parse_service,
)
from musl_pack.errors import ConfigurationError, DescriptorWriteError

SERVERLESS_YML = textwrap.dedent("""\
    service: demo
    provider:
      name: aws
      runtime: rust
    custom:
      rust:
        profile: dev
        cargoFlags: "--features lambda --locked"
    functions:
      hello:
        handler: hello-pkg.hello-bin
      web:
        handler: web.handler
        runtime: nodejs18.x
        rust:
          profile: release
""")


def test_load_yaml_service(tmp_path: Path) -> None:
    path = tmp_path / "serverless.yml"
    path.write_text(SERVERLESS_YML, encoding="utf-8")

    loaded = load_service_file(path)

    cfg = loaded.config
    assert loaded.path == path
    assert loaded.raw["service"] == "demo"
    assert cfg.provider_name == "aws"
    assert cfg.provider_runtime == "rust"
    assert cfg.profile == "dev"
    assert cfg.cargo_flags == ("--features", "lambda", "--locked")
    assert [f.name for f in cfg.functions] == ["hello", "web"]
    web = cfg.function("web")
    assert web is not None
    assert web.runtime == "nodejs18.x"
    assert web.profile == "release"
    assert cfg.function("missing") is None


def test_load_toml_service(tmp_path: Path) -> None:
    path = tmp_path / "serverless.toml"
    path.write_text(
        textwrap.dedent("""\
            [provider]
            name = "aws"

            [functions.api]
            handler = "api"
            runtime = "rust"
        """),
        encoding="utf-8",
    )

    cfg = load_service_file(path).config

    assert cfg.provider_runtime is None
    assert cfg.functions[0].handler == "api"
    assert cfg.functions[0].runtime == "rust"
    assert cfg.cargo_flags == ()


def test_invalid_json_reports_position(tmp_path: Path) -> None:
    path = tmp_path / "serverless.json"
    path.write_text('{"provider": {"name": "aws",}}', encoding="utf-8")

    with pytest.raises(ConfigurationError, match=r"line 1, column \d+"):
        load_service_file(path)


def test_invalid_yaml_reports_position(tmp_path: Path) -> None:
    path = tmp_path / "serverless.yml"
    path.write_text("provider:\n  name: [aws\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        load_service_file(path)


def test_unsupported_suffix(tmp_path: Path) -> None:
    path = tmp_path / "serverless.ts"
    path.write_text("export default {}", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Unsupported"):
        load_service_file(path)


def test_parse_rejects_non_mapping_top_level() -> None:
    with pytest.raises(ConfigurationError, match="mapping"):
        parse_service(["not", "a", "mapping"])


def test_parse_requires_handler() -> None:
    with pytest.raises(ConfigurationError, match="functions.hello.handler"):
        parse_service({"provider": {"name": "aws"}, "functions": {"hello": {"runtime": "rust"}}})


def test_parse_rejects_non_string_runtime() -> None:
    with pytest.raises(ConfigurationError, match="functions.hello.runtime"):
        parse_service({"functions": {"hello": {"handler": "h", "runtime": 3}}})


def test_parse_rejects_non_mapping_rust_table() -> None:
    with pytest.raises(ConfigurationError, match="custom.rust"):
        parse_service({"custom": {"rust": "release"}})


def test_cargo_flags_accepts_list() -> None:
    cfg = parse_service({"custom": {"rust": {"cargoFlags": ["--features", "a b"]}}})
    assert cfg.cargo_flags == ("--features", "a b")


def test_cargo_flags_rejects_other_types() -> None:
    with pytest.raises(ConfigurationError, match="cargoFlags"):
        parse_service({"custom": {"rust": {"cargoFlags": 42}}})


def test_missing_functions_section_is_empty() -> None:
    cfg = parse_service({"provider": {"name": "aws"}})
    assert cfg.functions == ()


def test_find_service_file_prefers_yml(tmp_path: Path) -> None:
    (tmp_path / "serverless.json").write_text("{}", encoding="utf-8")
    (tmp_path / "serverless.yml").write_text("{}", encoding="utf-8")

    assert find_service_file(tmp_path) == tmp_path / "serverless.yml"


def test_find_service_file_missing(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="No service file"):
        find_service_file(tmp_path)


def test_dump_service_json_and_yaml(tmp_path: Path) -> None:
    raw = {"provider": {"runtime": "provided"}, "functions": {"a": {"handler": "a"}}}

    json_out = tmp_path / "out" / "service.json"
    yaml_out = tmp_path / "out" / "service.yml"
    dump_service(raw, json_out)
    dump_service(raw, yaml_out)

    assert json.loads(json_out.read_text(encoding="utf-8")) == raw
    assert yaml.safe_load(yaml_out.read_text(encoding="utf-8")) == raw


def test_dump_service_rejects_toml(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        dump_service({}, tmp_path / "service.toml")


def test_dump_service_json_writes_dates_as_iso_text(tmp_path: Path) -> None:
    import datetime

    out = tmp_path / "service.json"
    dump_service({"custom": {"version": datetime.date(2012, 10, 17)}}, out)

    assert json.loads(out.read_text(encoding="utf-8")) == {"custom": {"version": "2012-10-17"}}


def test_dump_service_write_failure_is_wrapped(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(DescriptorWriteError, match="Cannot write patched service descriptor"):
        dump_service({}, blocker / "service.json")
