"""
chainsession.infrastructure.artifact_registry - Artifact Registry
===================================================================

Keeps the Session Store's ``artifacts`` field in step with the compiler's
output. The external compiler / file watcher emits
``(source_id, artifact_bytes)`` notifications; each one is parsed into a
CompiledArtifact and written under its derived id.

    compiler ──(source_id, bytes)──→ on_artifact_loaded()
                                          │ parse_artifact()   (schema-validated)
                                          ▼
                                  store.artifacts[id] = CompiledArtifact

Identity:
    id   = "{source_id}/{contractName}"       stable across recompiles
    name = "{contractName} - {parent}/{file}" display name, also accepted
                                              by resolve()

Ordering:
    Notifications for the same source id are processed in arrival order.
    Different source ids may be in flight concurrently; they write disjoint
    keys, so last-writer-wins per id is all that is needed.

Failures:
    A malformed payload raises ArtifactParseError for that notification
    only. The registry and all previously loaded artifacts are unaffected.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional, Union

import structlog
from pydantic import ValidationError

from chainsession.core.exceptions import ArtifactParseError
from chainsession.core.models import CompiledArtifact, RawArtifact
from chainsession.orchestration.serializer import KeyedSerializer
from chainsession.orchestration.session_store import SessionStore

logger = structlog.get_logger()

Payload = Union[bytes, str]


def parse_artifact(source_id: str, payload: Payload) -> CompiledArtifact:
    """Parse an artifact document into a registry entry.

    Args:
        source_id: Location the payload was loaded from.
        payload: JSON document ``{contractName, abi, bytecode, ...}``.

    Returns:
        The CompiledArtifact with derived id and display name.

    Raises:
        ArtifactParseError: If the payload is not valid JSON or does not
            match the minimal artifact shape.
    """
    try:
        raw = RawArtifact.model_validate_json(payload)
    except ValidationError as exc:
        problems = [
            f"{'.'.join(str(loc) for loc in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        ]
        raise ArtifactParseError(
            message=f"Malformed artifact {source_id}: {'; '.join(problems)}",
            source_id=source_id,
            details={"errors": problems},
        ) from exc

    return CompiledArtifact.from_raw(source_id, raw)


class ArtifactRegistry:
    """Reacts to artifact-loaded notifications and maintains ``artifacts``.

    Example:
        >>> registry = ArtifactRegistry(store)
        >>> artifact = await registry.on_artifact_loaded(
        ...     "/ws/build/Token.sol/Token.json", payload
        ... )
        >>> artifact.id
        '/ws/build/Token.sol/Token.json/Token'
        >>> registry.resolve("Token - Token.sol/Token.json")
        '/ws/build/Token.sol/Token.json/Token'
    """

    def __init__(
        self,
        store: SessionStore,
        serializer: Optional[KeyedSerializer] = None,
    ) -> None:
        self._store = store
        self._serializer = serializer or KeyedSerializer("artifact_sources")
        # display name → artifact id
        self._aliases: dict[str, str] = {}
        self._logger = logger.bind(component="artifact_registry")

    # =========================================================================
    # Notifications
    # =========================================================================

    async def on_artifact_loaded(self, source_id: str, payload: Payload) -> CompiledArtifact:
        """Parse ``payload`` and write it to the store.

        Raises:
            ArtifactParseError: If the payload is malformed.
        """
        async with self._serializer.hold(source_id):
            return await self._ingest(source_id, payload)

    async def load_file(self, path: Union[str, Path]) -> CompiledArtifact:
        """Read an artifact file and register it under its path.

        The read runs off the event loop.

        Raises:
            ArtifactParseError: If the file cannot be read or is malformed.
        """
        source_id = Path(path).as_posix()
        async with self._serializer.hold(source_id):
            try:
                payload = await asyncio.to_thread(Path(path).read_bytes)
            except OSError as exc:
                raise ArtifactParseError(
                    message=f"Cannot read artifact {source_id}: {exc}",
                    source_id=source_id,
                    error_code="ARTIFACT_READ_FAILED",
                ) from exc
            return await self._ingest(source_id, payload)

    # =========================================================================
    # Lookup
    # =========================================================================

    def get(self, artifact_id: str) -> Optional[CompiledArtifact]:
        return self._store.artifact(artifact_id)

    def resolve(self, identifier: str) -> Optional[str]:
        """Artifact id for an id or display name; None if unknown."""
        if identifier in self._store.artifacts:
            return identifier
        artifact_id = self._aliases.get(identifier)
        if artifact_id is not None and artifact_id in self._store.artifacts:
            return artifact_id
        return None

    @property
    def display_names(self) -> list[str]:
        return sorted(a.name for a in self._store.artifacts.values())

    def __len__(self) -> int:
        return len(self._store.artifacts)

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    async def _ingest(self, source_id: str, payload: Payload) -> CompiledArtifact:
        try:
            artifact = parse_artifact(source_id, payload)
        except ArtifactParseError as exc:
            self._logger.warning(
                "artifact_parse_failed",
                source_id=source_id,
                error=exc.message,
            )
            raise

        replaced = artifact.id in self._store.artifacts
        await self._store.set_artifact(artifact)
        self._aliases[artifact.name] = artifact.id

        self._logger.info(
            "artifact_loaded",
            artifact_id=artifact.id,
            name=artifact.name,
            replaced=replaced,
            abi_entries=len(artifact.abi),
        )
        return artifact
