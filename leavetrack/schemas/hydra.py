"""
JSON-LD / Hydra helpers.

Items carry @context, @id and @type; references to other resources are IRIs
such as "/api/users/7". Collections list their items under "hydra:member".
"""
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from leavetrack.core.config import settings
from leavetrack.core.exceptions import ValidationError


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python. Unknown keys (@context, @type...) are ignored."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        extra="ignore",
    )

    def to_api(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def iri(resource: str, id: int) -> str:
    return f"{settings.api_prefix}/{resource}/{id}"


def parse_iri(value: Union[str, int, None], resource: str = "users") -> Optional[int]:
    """
    Accepts an IRI ("/api/users/7", "https://host/api/users/7"), a bare id ("7") or an int.
    """
    if value is None or value == "":
        return None
    if isinstance(value, int):
        return value
    tail = str(value).rstrip("/").split("/")[-1]
    if "/" in str(value) and f"/{resource}/" not in str(value):
        raise ValidationError(f"Invalid {resource} reference: {value}")
    try:
        return int(tail)
    except ValueError:
        raise ValidationError(f"Invalid {resource} reference: {value}")


def item(resource: str, type_: str, data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "@context": f"{settings.api_prefix}/contexts/{type_}",
        "@id": iri(resource, data["id"]),
        "@type": type_,
        **data,
    }


def collection(resource: str, type_: str, members: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "@context": f"{settings.api_prefix}/contexts/{type_}",
        "@id": f"{settings.api_prefix}/{resource}",
        "@type": "hydra:Collection",
        "hydra:member": [item(resource, type_, m) for m in members],
        "hydra:totalItems": len(members),
    }
