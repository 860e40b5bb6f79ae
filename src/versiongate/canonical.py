from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel


def canonical_json_bytes(obj: Any) -> bytes:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode(
        "utf-8"
    )


def canonical_json_str(obj: Any) -> str:
    return canonical_json_bytes(obj).decode("utf-8")


def canonical_model_str(model: BaseModel) -> str:
    data = model.model_dump(mode="json", by_alias=True)
    return canonical_json_str(data)


def pretty_json_str(obj: Any) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False) + "\n"
