"""
Data models for the Harbor file store.

BlobDescriptor is the value handed back to callers after an upload. The
Pydantic models mirror documents owned by the registry (OCI manifests and
Harbor artifact records); they allow unknown fields so that anything a
registry adds survives a decode/encode round trip.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import MalformedLayer, MalformedManifest, NoLayers

__all__ = ["BlobDescriptor", "Descriptor", "Manifest", "Artifact"]


@dataclass(frozen=True)
class BlobDescriptor:
    """
    Identity of a stored blob.

    Invariants:
    - digest is algorithm-prefixed ("sha256:<hex>") and is the sole identity;
      size and media_type do not take part in equality or hashing
    - size is 0 when unknown (e.g. a descriptor built from a bare digest)
    """
    digest: str
    size: int = field(default=0, compare=False)
    media_type: Optional[str] = field(default=None, compare=False)

    @property
    def hex(self) -> str:
        """Digest without its algorithm prefix."""
        return self.digest.split(":", 1)[-1]


class Descriptor(BaseModel):
    """OCI content descriptor as it appears inside a manifest."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    media_type: Optional[str] = Field(default=None, alias="mediaType")
    digest: Optional[str] = None
    size: Optional[int] = None

    @classmethod
    def for_blob(cls, blob: BlobDescriptor, media_type: str) -> Descriptor:
        return cls(media_type=media_type, digest=blob.digest, size=blob.size)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class Manifest(BaseModel):
    """
    OCI image manifest envelope.

    Only config and layers are modelled; every other field (annotations,
    subject, registry-specific keys) is kept as an extra and written back
    unchanged. The most recently appended layer is always ``layers[0]``.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    schema_version: Optional[int] = Field(default=None, alias="schemaVersion")
    media_type: Optional[str] = Field(default=None, alias="mediaType")
    config: Optional[Descriptor] = None
    layers: Optional[List[Descriptor]] = None

    @classmethod
    def from_bytes(cls, payload: bytes) -> Manifest:
        """
        Decode manifest bytes.

        Raises:
            MalformedManifest: If payload is not a JSON object or config/layers
                entries are not objects
        """
        try:
            data = json.loads(payload)
        except ValueError as e:
            raise MalformedManifest(f"Invalid manifest JSON: {e}") from e

        if not isinstance(data, dict):
            raise MalformedManifest(f"Manifest must be a JSON object, got {type(data).__name__}")

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise MalformedManifest(f"Unexpected manifest structure: {e}") from e

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_dict(), separators=(",", ":")).encode("utf-8")

    def with_layer_prepended(self, layer: Descriptor) -> Manifest:
        """Return a copy with ``layer`` inserted at position 0."""
        data = self.to_dict()
        data["layers"] = [layer.to_dict()] + list(data.get("layers") or [])
        return Manifest.model_validate(data)

    def latest_layer(self) -> Descriptor:
        """
        Return the most recently appended layer.

        Raises:
            NoLayers: If layers is missing or empty
            MalformedLayer: If the first layer has no digest
        """
        if not self.layers:
            raise NoLayers("No layers field found or it is empty")
        first = self.layers[0]
        if not first.digest:
            raise MalformedLayer("No digest field found in layer at index 0")
        return first

    @property
    def layer_count(self) -> int:
        return len(self.layers or [])


class Artifact(BaseModel):
    """
    Harbor artifact record from the management API.

    ``id`` is assigned by Harbor on every manifest push and is treated as a
    monotonic recency signal.
    """
    model_config = ConfigDict(extra="allow")

    id: int
    digest: str
    push_time: Optional[datetime] = None
    pull_time: Optional[datetime] = None
    size: int = 0
    tags: Optional[List[Any]] = None
