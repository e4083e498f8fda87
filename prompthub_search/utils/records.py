"""
Prompt record helpers
Projects raw storage rows into Candidate models
"""
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
import logging

from ..models.search import Candidate

logger = logging.getLogger(__name__)

# Message fields checked, in order, when a message is a dict
MESSAGE_TEXT_FIELDS = ("content", "text", "prompt", "message")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a storage timestamp into an aware datetime

    Args:
        value: ISO string, datetime, date or None

    Returns:
        UTC-aware datetime, or None if missing/unparseable
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"Unparseable timestamp: {value!r}")
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _message_text(message: Any) -> str:
    if isinstance(message, str):
        return message
    if isinstance(message, dict):
        for field in MESSAGE_TEXT_FIELDS:
            text = message.get(field)
            if isinstance(text, str) and text:
                return text
    return ""


def extract_content(record: Dict[str, Any], max_length: int = 500) -> str:
    """
    Flatten a record's message structure into preview text

    Messages may be a list of strings or {role, content} dicts, a single
    dict, or a plain string. Falls back to a top-level content column.

    Args:
        record: Raw prompt record
        max_length: Preview length before truncation

    Returns:
        Flattened text, truncated with a trailing ellipsis
    """
    messages = record.get("messages")
    content = ""

    if isinstance(messages, list):
        content = "\n\n".join(t for t in (_message_text(m) for m in messages) if t)
    elif isinstance(messages, (str, dict)):
        content = _message_text(messages)

    if not content and isinstance(record.get("content"), str):
        content = record["content"]

    content = content.strip()
    if len(content) > max_length:
        content = content[:max_length] + "..."
    return content


def _normalize_tags(tags: Any) -> Iterable[str]:
    if isinstance(tags, str):
        return [t.strip() for t in tags.split(",") if t.strip()]
    if isinstance(tags, (list, tuple, set, frozenset)):
        return [str(t).strip() for t in tags if t is not None and str(t).strip()]
    return []


def candidate_from_record(record: Dict[str, Any], max_content_length: int = 500) -> Candidate:
    """
    Project a raw prompt record into a Candidate

    Args:
        record: Row as returned by storage
        max_content_length: Content preview length

    Returns:
        Candidate

    Raises:
        ValueError: if the record is not a mapping
    """
    if not isinstance(record, dict):
        raise ValueError(f"Prompt record must be a mapping, got {type(record).__name__}")

    record_id = record.get("id")
    return Candidate(
        id=str(record_id) if record_id is not None else "",
        name=str(record.get("name") or ""),
        description=str(record.get("description") or ""),
        category=record.get("category") or None,
        tags=frozenset(_normalize_tags(record.get("tags"))),
        content=extract_content(record, max_content_length),
        created_at=parse_timestamp(record.get("created_at")),
        updated_at=parse_timestamp(record.get("updated_at")),
    )


def candidates_from_records(
    records: Optional[Iterable[Dict[str, Any]]],
    max_content_length: int = 500,
) -> List[Candidate]:
    """Project many records, skipping ones that cannot be converted"""
    candidates = []
    for record in records or []:
        try:
            candidates.append(candidate_from_record(record, max_content_length))
        except (ValueError, TypeError) as e:
            logger.warning(f"Skipping malformed prompt record: {e}")
    return candidates
