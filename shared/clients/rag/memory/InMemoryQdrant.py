"""In-process stand-in for the subset of the Qdrant REST API used by RAGClientQdrant.

Served through httpx.MockTransport, so the memory engine exercises exactly
the same request building and response parsing as the live engine. Used for
demo mode and tests; data lives only as long as the process.
"""

import json
import math
import re
from typing import Any

import httpx

_COLLECTION_PATH = re.compile(r"^/collections/(?P<name>[^/]+)(?P<rest>/.*)?$")


def cosine_similarity(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def _payload_value(payload: dict, dotted_key: str) -> Any:
    value: Any = payload
    for part in dotted_key.split("."):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def _matches(payload: dict, filter: dict | None) -> bool:
    if not filter:
        return True
    for condition in filter.get("must", []):
        if _payload_value(payload, condition["key"]) != condition.get("match", {}).get("value"):
            return False
    return True


class InMemoryQdrant:
    """Collections of points held in dicts, keyed by point id."""

    def __init__(self) -> None:
        self.collections: dict[str, dict] = {}

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    ##########################################
    ############### DISPATCH #################
    ##########################################

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        body = json.loads(request.content) if request.content else {}
        if path == "/healthz":
            return httpx.Response(200, text="healthz check passed")
        if path == "/collections" and request.method == "GET":
            return self._ok({"collections": [{"name": name} for name in self.collections]})

        match = _COLLECTION_PATH.match(path)
        if not match:
            return self._error(404, f"Unknown path {path}")
        name = match.group("name")
        rest = match.group("rest") or ""

        if rest == "" and request.method == "PUT":
            return self._create_collection(name, body)
        if name not in self.collections:
            return self._error(404, f"Not found: Collection `{name}` doesn't exist!")
        collection = self.collections[name]

        if rest == "/index" and request.method == "PUT":
            collection["indexes"][body["field_name"]] = body["field_schema"]
            return self._ok({"status": "acknowledged"})
        if rest == "/points" and request.method == "PUT":
            return self._upsert(collection, body)
        if rest == "/points/search" and request.method == "POST":
            return self._search(collection, body)
        if rest == "/points/delete" and request.method == "POST":
            return self._delete(collection, body)
        if rest == "/points/count" and request.method == "POST":
            count = sum(1 for p in collection["points"].values() if _matches(p["payload"], body.get("filter")))
            return self._ok({"count": count})
        return self._error(404, f"Unknown path {path}")

    ##########################################
    ############### HANDLERS #################
    ##########################################

    def _create_collection(self, name: str, body: dict) -> httpx.Response:
        if name in self.collections:
            return self._error(409, f"Wrong input: Collection `{name}` already exists!")
        vectors = body.get("vectors", {})
        self.collections[name] = {
            "size": vectors.get("size"),
            "distance": vectors.get("distance"),
            "indexes": {},
            "points": {},
        }
        return self._ok(True)

    def _upsert(self, collection: dict, body: dict) -> httpx.Response:
        points = body.get("points", [])
        for point in points:
            if len(point["vector"]) != collection["size"]:
                return self._error(
                    400,
                    f"Wrong input: Vector dimension error: expected dim: {collection['size']}, got {len(point['vector'])}",
                )
        for point in points:
            collection["points"][str(point["id"])] = point
        return self._ok({"operation_id": 0, "status": "completed"})

    def _search(self, collection: dict, body: dict) -> httpx.Response:
        vector = body["vector"]
        if len(vector) != collection["size"]:
            return self._error(400, "Wrong input: Vector dimension error")
        hits = [
            {"id": point_id, "version": 0, "score": cosine_similarity(vector, point["vector"]), "payload": point["payload"]}
            for point_id, point in collection["points"].items()
            if _matches(point["payload"], body.get("filter"))
        ]
        hits.sort(key=lambda hit: hit["score"], reverse=True)
        return self._ok(hits[: body.get("limit", 10)])

    def _delete(self, collection: dict, body: dict) -> httpx.Response:
        doomed = [pid for pid, p in collection["points"].items() if _matches(p["payload"], body.get("filter"))]
        for point_id in doomed:
            del collection["points"][point_id]
        return self._ok({"operation_id": 0, "status": "completed"})

    ##########################################
    ############### RESPONSES ################
    ##########################################

    @staticmethod
    def _ok(result: Any) -> httpx.Response:
        return httpx.Response(200, json={"result": result, "status": "ok", "time": 0.0})

    @staticmethod
    def _error(status_code: int, message: str) -> httpx.Response:
        return httpx.Response(status_code, json={"status": {"error": message}, "time": 0.0})
