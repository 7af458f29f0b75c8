"""Wire payload models for error records."""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal


class NameValuePair(BaseModel):
    """
    One entry of a multi-valued collection.

    Collections such as the query string can hold several values for the
    same name, so they are serialized as lists of pairs rather than objects.
    """

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)

    name: str
    value: Optional[str] = None


class ErrorPayload(BaseModel):
    """Full serialized form of an error record."""

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)

    guid: uuid.UUID = Field(alias="GUID")
    application_name: Optional[str] = None
    machine_name: Optional[str] = None
    type: Optional[str] = None
    source: Optional[str] = None
    message: Optional[str] = None
    detail: Optional[str] = None
    error_hash: Optional[int] = None
    creation_date: datetime
    status_code: Optional[int] = None
    custom_data: Optional[Dict[str, str]] = None
    duplicate_count: int = 1
    is_protected: bool = False
    sql: Optional[str] = Field(default=None, alias="SQL")
    deletion_date: Optional[datetime] = None
    host: Optional[str] = None
    url: Optional[str] = None
    http_method: Optional[str] = Field(default=None, alias="HTTPMethod")
    ip_address: Optional[str] = Field(default=None, alias="IPAddress")
    server_variables_serializable: Optional[List[NameValuePair]] = None
    query_string_serializable: Optional[List[NameValuePair]] = None
    form_serializable: Optional[List[NameValuePair]] = None
    cookies_serializable: Optional[List[NameValuePair]] = None
    request_headers_serializable: Optional[List[NameValuePair]] = None


class DetailedErrorPayload(BaseModel):
    """
    Reduced serialized form of an error record for consumers outside the application.

    Timestamps are epoch seconds and collections are flattened to
    single-valued maps (last value wins).
    """

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)

    guid: uuid.UUID = Field(alias="GUID")
    application_name: Optional[str] = None
    creation_date: int
    custom_data: Optional[Dict[str, str]] = None
    deletion_date: Optional[int] = None
    detail: Optional[str] = None
    duplicate_count: int = 1
    error_hash: Optional[int] = None
    http_method: Optional[str] = Field(default=None, alias="HTTPMethod")
    host: Optional[str] = None
    ip_address: Optional[str] = Field(default=None, alias="IPAddress")
    is_protected: bool = False
    machine_name: Optional[str] = None
    message: Optional[str] = None
    sql: Optional[str] = Field(default=None, alias="SQL")
    source: Optional[str] = None
    status_code: Optional[int] = None
    type: Optional[str] = None
    url: Optional[str] = None
    query_string: Optional[str] = None
    server_variables: Optional[Dict[str, Optional[str]]] = None
    cookie_variables: Optional[Dict[str, Optional[str]]] = None
    request_headers: Optional[Dict[str, Optional[str]]] = None
    query_string_variables: Optional[Dict[str, Optional[str]]] = None
    form_variables: Optional[Dict[str, Optional[str]]] = None
