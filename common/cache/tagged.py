"""
Tag-scoped cache handles.

Tags are namespaces: every tag name owns a random id kept forever in the
underlying store. Entries written through a tagged handle are stored under a
key derived from the ids of all its tags, so flushing a tag (replacing its id)
makes every entry written under it unreachable without enumerating them.
"""

import hashlib
import uuid
from typing import Any, Dict, List

from loguru import logger

from .store import CacheStore


class TagSet:
    """An ordered set of tag names bound to a store"""

    def __init__(self, store: CacheStore, names: List[str]):
        self.store = store
        self.names = list(names)

    def tag_key(self, name: str) -> str:
        return f"tag:{name}:key"

    def tag_id(self, name: str) -> str:
        """Get the unique id for the tag, creating it on first use"""
        tag_id = self.store.get(self.tag_key(name))
        if tag_id is None:
            tag_id = self.reset_tag(name)
        return tag_id

    def reset_tag(self, name: str) -> str:
        tag_id = uuid.uuid4().hex
        self.store.forever(self.tag_key(name), tag_id)
        return tag_id

    def reset(self) -> None:
        for name in self.names:
            self.reset_tag(name)

    def namespace(self) -> str:
        return "|".join(self.tag_id(name) for name in self.names)


class TaggedCache(CacheStore):
    """A store handle whose entries are invalidated together with its tags"""

    def __init__(self, store: CacheStore, tags: TagSet):
        super().__init__(prefix="")
        self.store = store
        self.tag_set = tags

    def tagged_item_key(self, key: str) -> str:
        namespace = hashlib.sha1(self.tag_set.namespace().encode("utf-8")).hexdigest()
        return f"{namespace}:{key}"

    def get(self, key: str, default: Any = None) -> Any:
        return self.store.get(self.tagged_item_key(key), default)

    def put(self, key: str, value: Any, minutes: float) -> bool:
        return self.store.put(self.tagged_item_key(key), value, minutes)

    def forever(self, key: str, value: Any) -> bool:
        return self.store.forever(self.tagged_item_key(key), value)

    def forget(self, key: str) -> bool:
        return self.store.forget(self.tagged_item_key(key))

    def flush(self) -> bool:
        """Invalidate every entry stored under any of these tags"""
        self.tag_set.reset()
        logger.info(f"QueryCache FLUSH tags={self.tag_set.names}")
        return True

    def tags(self, names) -> CacheStore:
        if isinstance(names, str):
            names = [names]
        return TaggedCache(self.store, TagSet(self.store, self.tag_set.names + list(names)))

    def stats(self) -> Dict[str, Any]:
        return self.store.stats()

    def _record(self, hit: bool) -> None:
        self.store._record(hit)
