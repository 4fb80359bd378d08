#!/usr/bin/env python3
"""Generate or verify requirements.txt from pyproject.toml.

    python scripts/sync_requirements.py          # rewrite requirements.txt
    python scripts/sync_requirements.py --check  # fail if it is stale
"""

from __future__ import annotations

import argparse
import tomllib
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
REQUIREMENTS = ROOT / "requirements.txt"
# Runtime profile only; the `test` extra stays out of requirements.txt.
EXTRAS = ("cli",)
HEADER = (
    f"# Generated from pyproject.toml (base + extras: {','.join(EXTRAS)})\n"
    "# Do not edit manually; run: python scripts/sync_requirements.py\n"
    "\n"
)


def declared_requirements() -> list[str]:
    project = tomllib.loads((ROOT / "pyproject.toml").read_text(encoding="utf-8"))["project"]
    deps = set(project.get("dependencies", []))
    optional = project.get("optional-dependencies", {})
    for extra in EXTRAS:
        deps.update(optional.get(extra, []))
    return sorted(dep.strip() for dep in deps if dep.strip())


def listed_requirements() -> list[str]:
    if not REQUIREMENTS.exists():
        return []
    lines = (line.split("#", 1)[0].strip() for line in REQUIREMENTS.read_text(encoding="utf-8").splitlines())
    return sorted(line for line in lines if line)


def check() -> None:
    expected = set(declared_requirements())
    actual = set(listed_requirements())
    if expected == actual:
        print("Dependency sync check passed.")
        return
    parts = ["requirements.txt is out of sync with pyproject.toml."]
    parts.extend(f"- missing: {req}" for req in sorted(expected - actual))
    parts.extend(f"- unexpected: {req}" for req in sorted(actual - expected))
    raise SystemExit("\n".join(parts))


def write() -> None:
    reqs = declared_requirements()
    REQUIREMENTS.write_text(HEADER + "\n".join(reqs) + "\n", encoding="utf-8")
    print(f"Wrote {len(reqs)} requirements to {REQUIREMENTS.name}")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--check", action="store_true", help="verify instead of writing")
    if parser.parse_args().check:
        check()
    else:
        write()


if __name__ == "__main__":
    main()
