"""
Chat message payloads exchanged with clients.

Two payload shapes are understood, neither carrying an explicit type field:

- `MessageSent`: ``{"msg": str, "user": str}``, a message a user wants to send.
- `RetrieveMessages`: ``{"msgs": [str, ...]}``, a page of message history.

Together they form the `MessageTypes` union. Decoding validates the payload
against one JSON schema per variant, in a fixed order, and returns the first
variant that matches. Encoding writes the variant's fields and nothing else.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Union

import jsonschema
from jsonschema import ValidationError

from chatglass.util.logger import get_logger

logger = get_logger("message_datatypes")


class MalformedPayload(ValueError):
    """Raised when an inbound payload matches none of the known message shapes."""

    def __init__(self, reason: str, payload: Any = None) -> None:
        super().__init__(reason)
        self.payload = payload


@dataclass(slots=True)
class MessageSent:
    """A chat message a user is trying to send.

    Attributes:
        msg (str): Raw message text, before moderation.
        user (str): Identity of the sender.
    """

    msg: str
    user: str

    def to_dict(self) -> Dict[str, Any]:
        return {"msg": self.msg, "user": self.user}


@dataclass(slots=True)
class RetrieveMessages:
    """A page of message history, oldest first.

    Attributes:
        msgs (List[str]): Message texts in order.
    """

    msgs: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"msgs": list(self.msgs)}


MessageTypes = Union[MessageSent, RetrieveMessages]


MESSAGE_SENT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "msg": {"type": "string"},
        "user": {"type": "string"},
    },
    "required": ["msg", "user"],
}

RETRIEVE_MESSAGES_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "msgs": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["msgs"],
}

# Variants are tried in this order; the first schema that validates wins.
VARIANT_SCHEMAS: List[tuple[type, Dict[str, Any]]] = [
    (MessageSent, MESSAGE_SENT_SCHEMA),
    (RetrieveMessages, RETRIEVE_MESSAGES_SCHEMA),
]


def _check_variants_disjoint() -> None:
    """Untagged decoding is only unambiguous while no two variants share a field."""
    seen: Dict[str, type] = {}
    for variant, schema in VARIANT_SCHEMAS:
        for name in schema["properties"]:
            if name in seen:
                raise RuntimeError(
                    f"Field '{name}' is shared by {seen[name].__name__} and {variant.__name__}"
                )
            seen[name] = variant


_check_variants_disjoint()


def _load_payload(payload: Union[str, bytes, Mapping[str, Any]]) -> Any:
    if isinstance(payload, (str, bytes, bytearray)):
        try:
            return json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.debug("[PAYLOAD] Invalid JSON: %s", exc)
            raise MalformedPayload("Payload is not valid JSON", payload) from exc
    return payload


def decode_message(payload: Union[str, bytes, Mapping[str, Any]]) -> MessageTypes:
    """Decode a payload into the first message variant whose shape it matches.

    Args:
        payload: A JSON document (str or bytes) or an already-parsed mapping.

    Returns:
        MessageTypes: A `MessageSent` or `RetrieveMessages` instance.

    Raises:
        MalformedPayload: If the payload is not JSON or matches no variant.
    """
    data = _load_payload(payload)

    if not isinstance(data, Mapping):
        raise MalformedPayload(f"Payload must be an object, got {type(data).__name__}", payload)

    for variant, schema in VARIANT_SCHEMAS:
        try:
            jsonschema.validate(instance=dict(data), schema=schema)
        except ValidationError as exc:
            logger.debug("[PAYLOAD] Not a %s: %s", variant.__name__, exc.message)
            continue

        if variant is MessageSent:
            return MessageSent(msg=data["msg"], user=data["user"])
        return RetrieveMessages(msgs=list(data["msgs"]))

    logger.warning("[PAYLOAD] Payload matched no message type (keys: %s)", sorted(data))
    raise MalformedPayload("Payload does not match any message type", payload)


def encode_message(message: MessageTypes) -> str:
    """Serialize a message variant to JSON without any type discriminator."""
    if not isinstance(message, (MessageSent, RetrieveMessages)):
        raise TypeError(f"Cannot encode {type(message).__name__} as a message")
    return json.dumps(message.to_dict())
