"""Decode stored poll options into typed `PollOption` values.

Older rows hold options JSON-encoded more than once (a JSON string whose
content is itself a JSON string). The decoder unwraps a bounded number of
layers and validates the result with pydantic; anything unusable decodes to
an empty option list.
"""

import json
import logging
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from models.poll_record import PollOption

LOGGER = logging.getLogger(__name__)

MAX_ENCODING_LAYERS = 5


class StoredPollOption(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    text: str
    image_url: Optional[str] = Field(default=None, alias="imageUrl")


_OPTIONS_ADAPTER = TypeAdapter(List[StoredPollOption])


def unwrap_json(raw: Any, max_layers: int = MAX_ENCODING_LAYERS) -> Any:
    """Repeatedly `json.loads` string values until a non-string is reached.

    Raises:
        ValueError: If a layer is not valid JSON or `max_layers` is exceeded.
    """
    value = raw
    for _ in range(max_layers):
        if not isinstance(value, (str, bytes)):
            return value
        value = json.loads(value)
    if isinstance(value, (str, bytes)):
        raise ValueError(f"Options still encoded after {max_layers} layers")
    return value


def decode_poll_options(raw: Any) -> List[PollOption]:
    """Return the typed options stored in `raw`, or [] when they cannot be read."""
    if raw is None or raw == "":
        return []
    try:
        parsed = unwrap_json(raw)
        stored = _OPTIONS_ADAPTER.validate_python(parsed)
    except (ValueError, ValidationError) as exc:
        LOGGER.warning("Unreadable poll options %r: %s", raw, exc)
        return []
    return [PollOption(id=o.id, text=o.text, image_url=o.image_url) for o in stored]


def encode_poll_options(options: List[PollOption]) -> str:
    """Serialise options once, in the camelCase shape older clients read."""
    return json.dumps(
        [{"id": o.id, "text": o.text, "imageUrl": o.image_url} for o in options]
    )
