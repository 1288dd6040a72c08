"""
Canonical commit model and normalization of Diversion API payloads.

The commit listing endpoint is not fully stable: it can answer with a bare
list or with an object holding a ``commits`` list, and a single logical field
may arrive under more than one name. Everything is normalized here so the
rest of the bot only sees ``Commit``.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, TypeAdapter, ValidationError

from diversion_notifier.core.errors import CommitPayloadError


# Alternate upstream names for each canonical field, in priority order
FIELD_ALIASES = {
    'author': ('author_name', 'author'),
    'message': ('commit_message', 'message'),
    'branch': ('branch',),
    'workspace': ('workspace',),
    'timestamp': ('timestamp', 'date'),
}

_datetime_adapter = TypeAdapter(datetime)


def _first_present(record: Dict[str, Any], names) -> Any:
    for name in names:
        value = record.get(name)
        if value not in (None, ''):
            return value
    return None


def _author_name(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, dict):
        value = _first_present(value, ('name', 'username', 'email'))
        if value is None:
            return None
    return str(value)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return _datetime_adapter.validate_python(value)
    except ValidationError:
        logger.debug(f"Ignoring unparseable commit timestamp: {value!r}")
        return None


class Commit(BaseModel):
    """A single commit as the bot understands it"""

    id: str
    author: Optional[str] = None
    message: Optional[str] = None
    branch: Optional[str] = None
    workspace: Optional[str] = None
    timestamp: Optional[datetime] = None

    @classmethod
    def from_api(cls, record: Dict[str, Any]) -> "Commit":
        """
        Build a commit from one upstream record

        Raises:
            CommitPayloadError: if the record is not an object or has no id
        """
        if not isinstance(record, dict):
            raise CommitPayloadError(f"Commit record is not an object: {type(record).__name__}")

        commit_id = record.get('id')
        if commit_id in (None, ''):
            raise CommitPayloadError("Commit record has no id")

        branch = _first_present(record, FIELD_ALIASES['branch'])
        workspace = _first_present(record, FIELD_ALIASES['workspace'])
        message = _first_present(record, FIELD_ALIASES['message'])

        return cls(
            id=str(commit_id),
            author=_author_name(_first_present(record, FIELD_ALIASES['author'])),
            message=str(message) if message is not None else None,
            branch=str(branch) if branch is not None else None,
            workspace=str(workspace) if workspace is not None else None,
            timestamp=_parse_timestamp(_first_present(record, FIELD_ALIASES['timestamp'])),
        )


def extract_commits(payload: Any) -> List[Any]:
    """
    Resolve the commit list from either supported response shape

    Returns the raw records, newest first as delivered by the API.

    Raises:
        CommitPayloadError: for any other shape
    """
    if isinstance(payload, list):
        return payload

    if isinstance(payload, dict):
        commits = payload.get('commits')
        if commits is None:
            logger.warning(f"Response object has no 'commits' field: keys={sorted(payload.keys())}")
            return []
        if not isinstance(commits, list):
            raise CommitPayloadError(f"'commits' field is not a list: {type(commits).__name__}")
        return commits

    raise CommitPayloadError(f"Unexpected response payload: {type(payload).__name__}")


def latest_commit(payload: Any) -> Optional[Commit]:
    """Newest commit in a payload, or None when the list is empty"""
    commits = extract_commits(payload)
    if not commits:
        return None
    return Commit.from_api(commits[0])
