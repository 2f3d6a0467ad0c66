"""
Service registry built from the VCAP_SERVICES binding manifest
"""

import json
import logging
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from binding_validator.bindings.classifier import classify
from binding_validator.bindings.extractor import extract_credentials
from binding_validator.config import settings
from binding_validator.models.credentials import ServiceCredentials
from binding_validator.models.enums import USER_PROVIDED, BackendKind

logger = logging.getLogger(__name__)

KindKey = Union[BackendKind, str]


def load_manifest(raw_manifest: Optional[str]) -> Dict[str, Any]:
    """Parse the manifest JSON, degrading to an empty manifest on any problem"""
    if raw_manifest is None or not raw_manifest.strip():
        logger.warning("VCAP_SERVICES is not set. Running without bound services.")
        return {}

    try:
        manifest = json.loads(raw_manifest)
    except json.JSONDecodeError as e:
        logger.error(f"Error parsing VCAP_SERVICES: {e}")
        return {}

    if not isinstance(manifest, dict):
        logger.error(f"VCAP_SERVICES must be a JSON object, got {type(manifest).__name__}")
        return {}
    return manifest


def parse_service_bindings(raw_manifest: Optional[str]) -> Dict[KindKey, List[ServiceCredentials]]:
    """
    Build the kind -> credentials mapping from a raw manifest string.

    Entries keep manifest order within each kind. Unclassified entries are
    kept under their original group key.
    """
    bindings: Dict[KindKey, List[ServiceCredentials]] = {}

    for group_key, entries in load_manifest(raw_manifest).items():
        if not isinstance(entries, list):
            logger.warning(f"Skipping VCAP_SERVICES group {group_key!r}: expected an array")
            continue

        for entry in entries:
            if not isinstance(entry, dict):
                logger.warning(f"Skipping non-object binding entry in group {group_key!r}")
                continue

            credentials = extract_credentials(entry, user_provided=(group_key == USER_PROVIDED))
            kind = classify(entry, group_key, credentials)
            bindings.setdefault(kind, []).append(credentials)

            if isinstance(kind, BackendKind):
                logger.info(
                    f"Bound service {credentials.service_name or '(unnamed)'} classified as {kind.value} "
                    f"(group: {group_key}, user-provided: {credentials.user_provided})"
                )
            else:
                logger.warning(
                    f"Could not classify service {credentials.service_name or '(unnamed)'}, "
                    f"keeping it under {group_key!r}"
                )

    return bindings


class ServiceRegistry:
    """
    Read-only view over parsed service bindings

    Built once at startup and shared by every request. Multiple instances
    of the same kind are all kept; consumers use the first one.
    """

    def __init__(self, bindings: Optional[Mapping[KindKey, List[ServiceCredentials]]] = None):
        frozen: Dict[KindKey, Tuple[ServiceCredentials, ...]] = {
            kind: tuple(records) for kind, records in (bindings or {}).items()
        }
        self._bindings = MappingProxyType(frozen)

    @classmethod
    def from_manifest(cls, raw_manifest: Optional[str]) -> "ServiceRegistry":
        return cls(parse_service_bindings(raw_manifest))

    @classmethod
    def from_environment(cls) -> "ServiceRegistry":
        """Registry for the VCAP_SERVICES manifest of the running process"""
        return cls.from_manifest(settings.get_vcap_services())

    def get(self, kind: KindKey) -> List[ServiceCredentials]:
        """All credential records for ``kind``, empty when none are bound"""
        return list(self._bindings.get(kind, ()))

    def first(self, kind: KindKey) -> Optional[ServiceCredentials]:
        records = self._bindings.get(kind, ())
        return records[0] if records else None

    def has(self, kind: KindKey) -> bool:
        return bool(self._bindings.get(kind))

    def kinds(self) -> List[str]:
        return [kind.value if isinstance(kind, BackendKind) else kind for kind in self._bindings]

    def summary(self) -> Dict[str, List[Dict[str, Any]]]:
        """Configured services per kind, safe to return to clients"""
        return {
            kind.value if isinstance(kind, BackendKind) else kind: [record.summary() for record in records]
            for kind, records in self._bindings.items()
        }

    def __contains__(self, kind: object) -> bool:
        return kind in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)

    def as_dict(self) -> Dict[KindKey, List[ServiceCredentials]]:
        return {kind: list(records) for kind, records in self._bindings.items()}
