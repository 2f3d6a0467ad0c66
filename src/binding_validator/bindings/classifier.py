"""
Classification of service binding entries into backend kinds

Rules are applied from most to least specific. When none of them gives
positive evidence the entry keeps its original group key instead of being
guessed into a kind, so a connector never talks the wrong protocol to a
server.
"""

import logging
import re
from typing import Any, Mapping, Optional, Union

from binding_validator.bindings.extractor import extract_credentials, extract_string
from binding_validator.models.credentials import ServiceCredentials
from binding_validator.models.enums import KIND_SYNONYMS, USER_PROVIDED, BackendKind

logger = logging.getLogger(__name__)

# Platform product prefixes on labels and group keys, e.g. "p.mysql", "p-rabbitmq"
PRODUCT_PREFIX = re.compile(r"^p[.-]")

# A synonym inside a name needs a non-letter on both sides
_NAME_PATTERNS = {
    synonym: re.compile(rf"[^a-z]{re.escape(synonym)}[^a-z]")
    for _, synonyms in KIND_SYNONYMS
    for synonym in synonyms
}
# mysql alone also accepts the start or end of the name as a boundary
_NAME_PATTERNS["mysql"] = re.compile(r"(?:^|[^a-z])mysql(?:[^a-z]|$)")


def match_name(name: str) -> Optional[BackendKind]:
    """
    Match a consumer-chosen service name.

    ``my-mysql-db`` and ``cache_redis_1`` match, ``mysqlish`` and ``redis2``
    do not. Names starting or ending with ``mysql`` followed or preceded by
    any non-letter (``mysql_1``) match as well.
    """
    name = name.lower()
    for kind, synonyms in KIND_SYNONYMS:
        for synonym in synonyms:
            if (name == synonym
                    or name.startswith(f"{synonym}-")
                    or name.endswith(f"-{synonym}")
                    or _NAME_PATTERNS[synonym].search(name)):
                return kind
    return None


def match_prefix(value: str) -> Optional[BackendKind]:
    """Match a platform label or group key by equality or prefix"""
    value = PRODUCT_PREFIX.sub("", value.lower())
    for kind, synonyms in KIND_SYNONYMS:
        if any(value.startswith(synonym) for synonym in synonyms):
            return kind
    return None


def infer_user_provided(credentials: ServiceCredentials) -> Optional[BackendKind]:
    """Infer a kind from the shape of user-provided credentials"""
    if credentials.jdbc_url:
        jdbc_url = credentials.jdbc_url.lower()
        if "mysql://" in jdbc_url:
            return BackendKind.MYSQL
        if "postgresql://" in jdbc_url:
            return BackendKind.POSTGRESQL

    # Host and port alone look like a key-value store, but only trust the name
    if credentials.host and credentials.port is not None and credentials.database is None:
        name = (credentials.service_name or "").lower()
        if "redis" in name or "valkey" in name:
            return BackendKind.KEYVALUE
    return None


def classify(
    entry: Mapping[str, Any],
    group_key: str,
    credentials: Optional[ServiceCredentials] = None
) -> Union[BackendKind, str]:
    """
    Determine the backend kind of a binding entry.

    Args:
        entry: Raw binding entry
        group_key: The manifest key the entry was listed under
        credentials: Already extracted credentials, extracted on demand otherwise

    Returns:
        The matching BackendKind, or ``group_key`` when the entry is unclassified
    """
    name = extract_string(entry, "name")
    if name:
        kind = match_name(name)
        if kind:
            return kind

    label = extract_string(entry, "label")
    if label:
        kind = match_prefix(label)
        if kind:
            return kind

    kind = match_prefix(group_key)
    if kind:
        return kind

    if group_key == USER_PROVIDED:
        if credentials is None:
            credentials = extract_credentials(entry, user_provided=True)
        kind = infer_user_provided(credentials)
        if kind:
            return kind

    return group_key
