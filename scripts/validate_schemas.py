#!/usr/bin/env python3
"""Check the shipped JSON schemas and every sample document that claims to follow them."""
import json
import sys
from pathlib import Path

try:
    import jsonschema
except Exception as e:
    print(f"DEPENDENCY_UNAVAILABLE: jsonschema: {e}")
    sys.exit(40)

ROOT = Path(__file__).resolve().parents[1]

# schema file -> ($id it must declare, sample glob under data/samples)
SCHEMAS = {
    "manifest.schema.json": ("urn:asmhash:schema:manifest:1.0.0", "manifests/*.manifest.json"),
}


def check_schema(filename: str, expected_id: str) -> dict:
    path = ROOT / "schemas" / filename
    if not path.is_file():
        raise ValueError(f"missing {path}")
    schema = json.loads(path.read_text(encoding="utf-8"))
    jsonschema.Draft202012Validator.check_schema(schema)
    if schema.get("$id") != expected_id:
        raise ValueError(f"$id mismatch in {filename}: {schema.get('$id')} != {expected_id}")
    return schema


def check_samples(schema: dict, pattern: str) -> int:
    validator = jsonschema.Draft202012Validator(schema)
    checked = 0
    for sample in sorted((ROOT / "data" / "samples").glob(pattern)):
        doc = json.loads(sample.read_text(encoding="utf-8"))
        first = next(iter(sorted(validator.iter_errors(doc), key=lambda err: list(err.path))), None)
        if first is not None:
            raise ValueError(f"{sample.relative_to(ROOT)}: {first.message}")
        checked += 1
    return checked


def main() -> int:
    checked = 0
    try:
        for filename, (expected_id, pattern) in SCHEMAS.items():
            checked += check_samples(check_schema(filename, expected_id), pattern)
    except (ValueError, jsonschema.SchemaError) as e:
        print(f"SCHEMA_VALIDATION_FAILED: {e}")
        return 20

    print(f"SCHEMA_VALIDATION_OK: samples={checked}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
