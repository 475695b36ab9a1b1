"""
Synthetic payload generation shared by both payload servers.
"""
import json
import random
from datetime import datetime, timezone

from transferbench.config import DEFAULT_SIZE

DESCRIPTION = (
    "This is a sample description for user {i}. It contains some repetitive text "
    "to make compression more effective. Lorem ipsum dolor sit amet, consectetur "
    "adipiscing elit."
)


def generate_sample_data(size: int = DEFAULT_SIZE) -> list[dict]:
    """Build `size` user records with a mix of repetitive and random fields."""
    timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    data = []
    for i in range(max(size, 0)):
        data.append({
            "id": i,
            "name": f"User {i}",
            "email": f"user{i}@example.com",
            "description": DESCRIPTION.format(i=i),
            "timestamp": timestamp,
            "metadata": {
                "active": i % 2 == 0,
                "role": "admin" if i % 3 == 0 else "user",
                "score": random.randint(0, 99),
            },
        })
    return data


def serialize(data: list[dict], pretty: bool = False) -> bytes:
    """Encode records as UTF-8 JSON, compact unless `pretty`."""
    if pretty:
        return json.dumps(data, indent=2).encode("utf-8")
    return json.dumps(data, separators=(",", ":")).encode("utf-8")
