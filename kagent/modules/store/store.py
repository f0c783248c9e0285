import json
import logging
from datetime import UTC, datetime
from typing import List, Optional

import redis.asyncio as redis

from kagent.errors import ConflictError, InternalError, NotFoundError

logger = logging.getLogger("kagent.store")


class ResourceStore:
    def __init__(self, redis_client):
        """
        Initialize resource store.

        Args:
            redis_client: Async Redis client (decode_responses=True)
        """
        self.redis = redis_client

    @staticmethod
    def _object_key(kind: str, namespace: str, name: str) -> str:
        return f"resource:{kind}:{namespace}:{name}"

    @staticmethod
    def _index_key(kind: str) -> str:
        return f"resources:{kind}"

    @staticmethod
    def _identity(obj: dict):
        metadata = obj.get("metadata") or {}
        name = metadata.get("name")
        namespace = metadata.get("namespace")
        if not name or not namespace:
            raise ValueError("Object metadata must carry name and namespace")
        return name, namespace

    async def get(self, kind: str, name: str, namespace: str) -> dict:
        """
        Fetch one object.

        Raises:
            NotFoundError: No object with that name in the namespace
            InternalError: Redis failure
        """
        try:
            data = await self.redis.get(self._object_key(kind, namespace, name))
        except redis.RedisError as e:
            raise InternalError(f"Failed to get {kind} {namespace}/{name}", e) from e

        if data is None:
            raise NotFoundError(f"{kind} {namespace}/{name} not found")
        return json.loads(data)

    async def list(self, kind: str, namespace: Optional[str] = None) -> List[dict]:
        """
        List objects of a kind, sorted by namespace then name.

        Index entries whose object has vanished are skipped.
        """
        try:
            members = await self.redis.smembers(self._index_key(kind))
            items = []
            for member in sorted(members):
                ns, _, name = member.partition("/")
                if namespace and ns != namespace:
                    continue
                data = await self.redis.get(self._object_key(kind, ns, name))
                if data is not None:
                    items.append(json.loads(data))
        except redis.RedisError as e:
            raise InternalError(f"Failed to list {kind}", e) from e

        return items

    async def create(self, kind: str, obj: dict) -> dict:
        """
        Store a new object.

        Stamps creationTimestamp and resourceVersion "1".

        Raises:
            ConflictError: Object already exists
        """
        name, namespace = self._identity(obj)
        metadata = obj.setdefault("metadata", {})
        metadata["creationTimestamp"] = datetime.now(UTC).isoformat()
        metadata["resourceVersion"] = "1"

        try:
            created = await self.redis.set(
                self._object_key(kind, namespace, name), json.dumps(obj), nx=True
            )
            if not created:
                raise ConflictError(f"{kind} {namespace}/{name} already exists")
            await self.redis.sadd(self._index_key(kind), f"{namespace}/{name}")
        except redis.RedisError as e:
            raise InternalError(f"Failed to create {kind} {namespace}/{name}", e) from e

        logger.debug(f"Created {kind} {namespace}/{name}")
        return obj

    async def update(self, kind: str, obj: dict) -> dict:
        """
        Replace an existing object and bump its resourceVersion.

        Raises:
            NotFoundError: Object does not exist
        """
        name, namespace = self._identity(obj)
        current = await self.get(kind, name, namespace)

        metadata = obj.setdefault("metadata", {})
        current_meta = current.get("metadata", {})
        metadata["creationTimestamp"] = current_meta.get("creationTimestamp")
        metadata["resourceVersion"] = str(int(current_meta.get("resourceVersion", "0")) + 1)

        try:
            updated = await self.redis.set(
                self._object_key(kind, namespace, name), json.dumps(obj), xx=True
            )
        except redis.RedisError as e:
            raise InternalError(f"Failed to update {kind} {namespace}/{name}", e) from e

        if not updated:
            raise NotFoundError(f"{kind} {namespace}/{name} not found")

        logger.debug(f"Updated {kind} {namespace}/{name} to version {metadata['resourceVersion']}")
        return obj

    async def delete(self, kind: str, name: str, namespace: str) -> None:
        """
        Remove an object.

        Raises:
            NotFoundError: Object does not exist
        """
        try:
            removed = await self.redis.delete(self._object_key(kind, namespace, name))
            await self.redis.srem(self._index_key(kind), f"{namespace}/{name}")
        except redis.RedisError as e:
            raise InternalError(f"Failed to delete {kind} {namespace}/{name}", e) from e

        if not removed:
            raise NotFoundError(f"{kind} {namespace}/{name} not found")

        logger.debug(f"Deleted {kind} {namespace}/{name}")
