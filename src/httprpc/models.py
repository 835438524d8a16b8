"""Base Pydantic models for httprpc.

All configuration and metadata models inherit from `RpcBaseModel` so that
they share one configuration:

- Unknown fields are rejected, so a misspelled method option fails at
  registration instead of being silently ignored
- Instances are immutable; manifests are read concurrently for the life of
  the process
- Wire-format camelCase aliases and Python snake_case names are both
  accepted on input

Example:
    >>> from httprpc.models import RpcBaseModel
    >>> from pydantic import Field
    >>>
    >>> class MyModel(RpcBaseModel):
    ...     method_timeout: int | None = Field(default=None, alias="methodTimeout")
    >>>
    >>> MyModel(methodTimeout=100).model_dump(by_alias=True)
    {'methodTimeout': 100}
"""

from pydantic import BaseModel, ConfigDict


class RpcBaseModel(BaseModel):
    """Base model for all httprpc Pydantic models.

    - extra="forbid": Rejects any fields not defined in the model
    - frozen=True: Makes instances immutable for concurrent readers
    - populate_by_name=True: Accepts field names as well as aliases
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)
