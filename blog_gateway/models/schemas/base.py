"""
Response envelope shared by every endpoint.
"""
from typing import Optional, Any, Dict, List
from pydantic import BaseModel, Field, ConfigDict

from blog_gateway.utils.time import utc_timestamp

class ResponseBase(BaseModel):
    """Standard envelope: ``{data?, message?, errors?, debug?, timestamp}``.

    Top-level keys whose value is None are omitted from the rendered body;
    nested payloads (e.g. pagination ``from``/``to``) keep their nulls.
    """
    data: Optional[Any] = None
    message: Optional[str] = None
    errors: Optional[Dict[str, List[str]]] = None
    debug: Optional[Dict[str, Any]] = None
    timestamp: str = Field(default_factory=utc_timestamp)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def to_content(self) -> Dict[str, Any]:
        content = self.model_dump(mode="json", by_alias=True)
        return {k: v for k, v in content.items() if v is not None}
