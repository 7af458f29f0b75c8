"""
JSON serialization for error records.

Two outbound views are provided:
- to_json(): every serializable field, with multi-valued collections
  encoded as ordered lists of name/value pairs so repeated names survive
- to_detailed_json(): a reduced view for consumers outside the application,
  with epoch-second timestamps and single-valued convenience maps

from_json() rebuilds a record from the full view only.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict, List, Optional, Union

from pydantic import ValidationError

from errorcapture.exceptions import SerializationError
from errorcapture.models.name_value import NameValueCollection
from errorcapture.models.serialization import DetailedErrorPayload, ErrorPayload, NameValuePair
from errorcapture.utils.logging import get_logger

if TYPE_CHECKING:
    from errorcapture.models.error import ErrorRecord

logger = get_logger(__name__)


def to_pairs(collection: Optional[NameValueCollection]) -> Optional[List[NameValuePair]]:
    """Encode a collection as an ordered list of pairs, keeping repeated names."""
    if collection is None:
        return None
    return [NameValuePair(name=name, value=value) for name, value in collection]


def from_pairs(pairs: Optional[List[NameValuePair]]) -> Optional[NameValueCollection]:
    """Rebuild a collection from its pair list, preserving order and multiplicity."""
    if pairs is None:
        return None
    return NameValueCollection((pair.name, pair.value) for pair in pairs)


def to_epoch(value: Optional[datetime]) -> Optional[int]:
    """Whole seconds since the Unix epoch; naive datetimes are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


def _to_map(collection: Optional[NameValueCollection]) -> Optional[Dict[str, Optional[str]]]:
    return collection.to_dict() if collection is not None else None


def to_payload(record: "ErrorRecord") -> ErrorPayload:
    """Build the full payload model for a record."""
    return ErrorPayload(
        guid=record.guid,
        application_name=record.application_name,
        machine_name=record.machine_name,
        type=record.type,
        source=record.source,
        message=record.message,
        detail=record.detail,
        error_hash=record.error_hash,
        creation_date=record.creation_date,
        status_code=record.status_code,
        custom_data=dict(record.custom_data) if record.custom_data is not None else None,
        duplicate_count=record.duplicate_count,
        is_protected=record.is_protected,
        sql=record.sql,
        deletion_date=record.deletion_date,
        host=record.host,
        url=record.url,
        http_method=record.http_method,
        ip_address=record.ip_address,
        server_variables_serializable=to_pairs(record.server_variables),
        query_string_serializable=to_pairs(record.query_string),
        form_serializable=to_pairs(record.form),
        cookies_serializable=to_pairs(record.cookies),
        request_headers_serializable=to_pairs(record.request_headers),
    )


def to_detailed_payload(record: "ErrorRecord") -> DetailedErrorPayload:
    """Build the reduced payload model for a record."""
    server_variables = record.server_variables
    return DetailedErrorPayload(
        guid=record.guid,
        application_name=record.application_name,
        creation_date=to_epoch(record.creation_date),
        custom_data=dict(record.custom_data) if record.custom_data is not None else None,
        deletion_date=to_epoch(record.deletion_date),
        detail=record.detail,
        duplicate_count=record.duplicate_count,
        error_hash=record.error_hash,
        http_method=record.http_method,
        host=record.host,
        ip_address=record.ip_address,
        is_protected=record.is_protected,
        machine_name=record.machine_name,
        message=record.message,
        sql=record.sql,
        source=record.source,
        status_code=record.status_code,
        type=record.type,
        url=record.url,
        query_string=server_variables.get("QUERY_STRING") if server_variables is not None else None,
        server_variables=_to_map(server_variables),
        cookie_variables=_to_map(record.cookies),
        request_headers=_to_map(record.request_headers),
        query_string_variables=_to_map(record.query_string),
        form_variables=_to_map(record.form),
    )


def to_json(record: "ErrorRecord") -> str:
    """
    Serialize a record with every serializable field.

    Args:
        record: Error record to serialize

    Returns:
        JSON document
    """
    return to_payload(record).model_dump_json(by_alias=True)


def to_detailed_json(record: "ErrorRecord") -> str:
    """
    Serialize a record for exposure outside the application.

    The exception object, storage id, cached raw JSON, rollup policy and
    duplicate flag are never included.

    Args:
        record: Error record to serialize

    Returns:
        JSON document
    """
    return to_detailed_payload(record).model_dump_json(by_alias=True)


def from_json(data: Union[str, bytes, bytearray]) -> "ErrorRecord":
    """
    Rebuild an error record from its full JSON representation.

    The whole payload is validated before the record is built, so a
    malformed document never yields a partially populated record.

    Args:
        data: JSON produced by to_json()

    Returns:
        Reconstructed ErrorRecord

    Raises:
        SerializationError: If the document is not a valid error payload
    """
    from errorcapture.models.error import ErrorRecord

    if not isinstance(data, (str, bytes, bytearray)):
        raise SerializationError(f"Expected JSON text, got {type(data).__name__}")

    try:
        payload = ErrorPayload.model_validate_json(data)
    except ValidationError as e:
        logger.warning(f"Rejected malformed error payload: {e.error_count()} validation error(s)")
        raise SerializationError(f"Invalid error payload: {e}") from e

    record = ErrorRecord(guid=payload.guid)
    record.application_name = payload.application_name
    record.machine_name = payload.machine_name
    record.type = payload.type
    record.source = payload.source
    record.message = payload.message
    record.detail = payload.detail
    record.error_hash = payload.error_hash
    record.creation_date = payload.creation_date
    record.status_code = payload.status_code
    record.custom_data = dict(payload.custom_data) if payload.custom_data is not None else None
    record.duplicate_count = payload.duplicate_count
    record.is_protected = payload.is_protected
    record.sql = payload.sql
    record.deletion_date = payload.deletion_date
    record.server_variables = from_pairs(payload.server_variables_serializable)
    record.query_string = from_pairs(payload.query_string_serializable)
    record.form = from_pairs(payload.form_serializable)
    record.cookies = from_pairs(payload.cookies_serializable)
    record.request_headers = from_pairs(payload.request_headers_serializable)
    record.host = payload.host
    record.url = payload.url
    record.http_method = payload.http_method
    record.ip_address = payload.ip_address
    return record
