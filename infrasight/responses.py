import orjson
from typing import Any
from fastapi.responses import JSONResponse
from pydantic import BaseModel

CACHE_OPTIONS = orjson.OPT_NON_STR_KEYS | orjson.OPT_UTC_Z
PRETTY_OPTIONS = CACHE_OPTIONS | orjson.OPT_INDENT_2

def _default(value: Any):
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Type is not JSON serializable: {type(value).__name__}")

def dump_json(value: Any, pretty: bool = False) -> bytes:
    """Serialize API and cache payloads the same way so cached bodies match fresh ones."""
    return orjson.dumps(value, default=_default, option=PRETTY_OPTIONS if pretty else CACHE_OPTIONS)

class PrettyJSONResponse(JSONResponse):
    def render(self, content: Any) -> bytes:
        return dump_json(content, pretty=True)
