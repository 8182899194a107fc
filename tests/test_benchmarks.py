"""Benchmark tests for ZOON with realistic generated datasets.

Tests token efficiency and data integrity against compact JSON.
Results are printed to stdout - use `pytest -s` to see benchmark output.
"""

import json
from typing import Any

import pytest
import tiktoken

import zoon

# Tiktoken encoder for token counting
ENCODER = tiktoken.get_encoding("cl100k_base")


def count_tokens(text: str) -> int:
    """Count tokens in a string using tiktoken."""
    return len(ENCODER.encode(text))


def compact_json(data: Any) -> str:
    return json.dumps(data, separators=(",", ":"))


def employees(n: int = 100) -> list[dict[str, Any]]:
    departments = ["Engineering", "Sales", "Marketing", "HR", "Finance"]
    return [
        {
            "id": i + 1,
            "firstName": f"First{i}",
            "lastName": f"Last{i}",
            "email": f"employee{i}@company.com",
            "department": departments[i % 5],
            "salary": 50000 + i * 1000,
            "active": True,
            "startDate": "2024-01-15",
        }
        for i in range(n)
    ]


def products(n: int = 80) -> list[dict[str, Any]]:
    categories = ["Electronics", "Clothing", "Home", "Sports", "Books"]
    return [
        {
            "id": i + 1,
            "name": f"Product{i}",
            "price": round(19.99 + i, 2),
            "stock": 100 - (i % 50),
            "category": categories[i % 5],
            "featured": i % 10 == 0,
            "rating": 3.5 + (i % 15) / 10,
        }
        for i in range(n)
    ]


def api_logs(n: int = 200) -> list[dict[str, Any]]:
    methods = ["GET", "POST", "PUT", "DELETE"]
    statuses = [200, 201, 400, 404, 500]
    return [
        {
            "id": i + 1,
            "method": methods[i % 4],
            "path": f"/api/v1/resource/{i}",
            "status": statuses[i % 5],
            "duration": (i * 37) % 1000,
            "timestamp": 1704067200 + i,
        }
        for i in range(n)
    ]


def descriptions(n: int = 30) -> list[dict[str, Any]]:
    return [
        {
            "id": i + 1,
            "title": f"Product {i}",
            "description": (
                f"This is product number {i} with a comprehensive description that "
                "contains lots of details about its features and capabilities"
            ),
            "category": ["Electronics", "Home", "Sports"][i % 3],
        }
        for i in range(n)
    ]


def settings(n: int = 20) -> list[dict[str, Any]]:
    return [
        {
            "id": i + 1,
            "server": {"host": "localhost", "port": 3000 + i},
            "database": {"driver": "postgres", "host": "db.local"},
            "cache": {"enabled": True, "ttl": 3600},
        }
        for i in range(n)
    ]


DATASETS = {
    "employees": (employees, 25),
    "products": (products, 25),
    "api_logs": (api_logs, 20),
    "descriptions": (descriptions, 0),
    "settings": (settings, 25),
}


@pytest.mark.parametrize("name", list(DATASETS))
def test_token_efficiency(name: str) -> None:
    """ZOON should use fewer tokens than compact JSON for uniform records."""
    factory, min_savings = DATASETS[name]
    data = factory()

    raw_json = compact_json(data)
    zoon_encoded = zoon.encode(data)

    raw_tokens = count_tokens(raw_json)
    zoon_tokens = count_tokens(zoon_encoded)
    savings_percent = (1 - zoon_tokens / raw_tokens) * 100

    print(f"\n{'=' * 60}")
    print(f"{name.upper()} BENCHMARK")
    print(f"{'=' * 60}")
    print(f"Records: {len(data)}")
    print(f"Raw JSON tokens: {raw_tokens:,}")
    print(f"ZOON tokens: {zoon_tokens:,}")
    print(f"Token savings: {savings_percent:.1f}%")
    print(f"{'=' * 60}")

    assert zoon_tokens < raw_tokens, "ZOON should use fewer tokens than raw JSON"
    assert savings_percent > min_savings


@pytest.mark.parametrize("name", list(DATASETS))
def test_data_integrity(name: str) -> None:
    """Roundtrip should preserve all data exactly."""
    factory, _ = DATASETS[name]
    data = factory()
    decoded = zoon.decode(zoon.encode(data))

    assert len(decoded) == len(data), "Record count mismatch"
    for i, (orig, dec) in enumerate(zip(data, decoded, strict=True)):
        assert orig == dec, f"Record {i} mismatch: {orig} != {dec}"


@pytest.mark.parametrize("name", list(DATASETS))
def test_type_preservation(name: str) -> None:
    """Field types survive the roundtrip, including int vs float."""
    factory, _ = DATASETS[name]
    data = factory()
    decoded = zoon.decode(zoon.encode(data))

    for i, (orig, dec) in enumerate(zip(data, decoded, strict=True)):
        for key in orig:
            assert type(orig[key]) is type(dec[key]), f"Type mismatch for '{key}' in record {i}"


@pytest.mark.parametrize("size", [2, 5, 10, 50])
def test_output_never_longer_than_json(size: int) -> None:
    data = [{"id": i + 1, "name": f"User_{i + 1}", "status": "active", "level": 1} for i in range(size)]
    assert len(zoon.encode(data)) <= len(compact_json(data))


def test_expected_layout_for_enum_heavy_data() -> None:
    statuses = ["active", "pending", "inactive", "suspended"]
    data = [{"id": i + 1, "status": statuses[i % 4], "tier": "basic"} for i in range(60)]
    encoded = zoon.encode(data)
    assert encoded.splitlines()[0] == "# id:i+ status=active|pending|inactive|suspended @tier=basic"
    assert zoon.stats(data, encoding=None).savings > 0.5
