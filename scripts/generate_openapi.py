"""Export the vote engine's OpenAPI document."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from assembly.main import create_application


def build_document() -> dict[str, object]:
    return create_application().openapi()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--output", type=Path, default=Path("docs/openapi.json"))
    args = parser.parse_args(argv)

    destination: Path = args.output
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(json.dumps(build_document(), indent=2), encoding="utf-8")
    print(f"OpenAPI document written to {destination}")


if __name__ == "__main__":
    main()
