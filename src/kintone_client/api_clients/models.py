"""Types shared by the record client.

Record payloads are schema-less field-code to value mappings; only the comment
sub-resource has a fixed shape worth modelling.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

AppID = Union[int, str]
RecordID = Union[int, str]
Revision = Union[int, str]
CommentID = Union[int, str]

Record = Dict[str, Any]


class MentionType(str, Enum):
    """Kind of entity a mention refers to."""

    USER = "USER"
    GROUP = "GROUP"
    ORGANIZATION = "ORGANIZATION"


class Mention(BaseModel):
    """Reference to a user, group or organization inside a comment."""

    code: str = Field(..., description="Code of the mentioned entity")
    type: MentionType = Field(..., description="Kind of the mentioned entity")


class CommentContent(BaseModel):
    """Body of a comment to post on a record."""

    text: str = Field(..., description="Comment text")
    mentions: Optional[List[Mention]] = Field(
        None, description="Entities mentioned in the comment"
    )

    def to_params(self) -> Dict[str, Any]:
        """Serialize for a request body, omitting unset mentions."""
        return self.model_dump(mode="json", exclude_none=True)


class CommentCreator(BaseModel):
    """Author of a comment."""

    code: str
    name: str


class Comment(BaseModel):
    """Comment as returned by the comments endpoint."""

    id: CommentID = Field(..., description="Comment ID")
    text: str = Field(..., description="Comment text")
    createdAt: str = Field(..., description="Creation timestamp")
    creator: CommentCreator = Field(..., description="Author of the comment")
    mentions: List[Mention] = Field(
        default_factory=list, description="Entities mentioned in the comment"
    )
