from __future__ import annotations

import os
import stat
import sys
from pathlib import Path

import pytest

from nearbuild.ui.console import Console, set_console

# Stand-in for cargo: records every call, and for `build` / `near metadata`
# writes the files the real tools would. FAKE_CARGO_FAIL=<subcommand> makes
# that subcommand exit 101 like cargo does.
FAKE_CARGO = """#!{python}
import json
import os
import sys
from pathlib import Path

args = sys.argv[1:]
with open(os.environ["FAKE_CARGO_LOG"], "a") as f:
    f.write(os.getcwd() + " :: " + " ".join(args) + "\\n")

sub = args[0]
if os.environ.get("FAKE_CARGO_FAIL") == sub:
    print("error: could not " + sub, file=sys.stderr)
    sys.exit(101)

target = Path(os.environ.get("CARGO_TARGET_DIR", "target"))
if sub == "build":
    release = target / "wasm32-unknown-unknown" / "release"
    release.mkdir(parents=True, exist_ok=True)
    for crate in ("adder", "delegator"):
        (release / (crate + ".wasm")).write_bytes(b"\\0asm" + crate.encode() * 8)
elif sub == "near":
    crate = Path.cwd().name
    out = target / "near" / crate
    out.mkdir(parents=True, exist_ok=True)
    name = os.environ.get("FAKE_METADATA_FILE", "abi.json")
    if os.environ.get("FAKE_METADATA_BROKEN"):
        (out / name).write_text("not json")
    else:
        (out / name).write_text(json.dumps({{
            "abi_schema_version": "0.1.0",
            "metainfo": {{"name": crate, "version": "0.1.0", "authors": []}},
            "abi": {{"functions": [{{"name": "add"}}], "root_schema": {{}}}},
        }}))
print("ok " + sub)
"""


@pytest.fixture(autouse=True)
def quiet_console():
    set_console(Console())
    yield


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("TARGET_DIR", "CARGO_TARGET_DIR", "FAKE_CARGO_FAIL", "FAKE_METADATA_FILE", "FAKE_METADATA_BROKEN"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def fake_cargo(tmp_path, monkeypatch) -> Path:
    """Put a fake `cargo` first on PATH; returns the call log path."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    cargo = bin_dir / "cargo"
    cargo.write_text(FAKE_CARGO.format(python=sys.executable))
    cargo.chmod(cargo.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    log = tmp_path / "cargo.log"
    log.write_text("")
    monkeypatch.setenv("FAKE_CARGO_LOG", str(log))
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    return log


@pytest.fixture
def workspace(tmp_path) -> Path:
    """A contract workspace with the `adder` and `delegator` crates."""
    ws = tmp_path / "aci"
    for crate in ("adder", "delegator"):
        (ws / crate / "src").mkdir(parents=True)
        (ws / crate / "Cargo.toml").write_text(
            f'[package]\nname = "{crate}"\nversion = "0.1.0"\nauthors = ["Near Inc <hello@near.org>"]\n'
        )
    (ws / "Cargo.toml").write_text('[workspace]\nmembers = ["adder", "delegator"]\n')
    return ws
