"""Context assembly: project content records into plain render contexts

A context is built from layers merged in order (user-defined fields, identity,
rendered body, properties, relations, named queries), filtered by the scope's
field allow-list and reduced to JSON-able data. Relations and named queries
expand only for the top-level item, so a related item never pulls in its own
relations or queries.
"""

import logging
from datetime import date, datetime
from threading import Lock
from typing import Any, Callable, Mapping, Optional, Sequence

from mdsite.core.models import Content
from mdsite.core.pipeline import Pipeline
from mdsite.core.query import Order, run_query
from mdsite.core.relations import local_view, resolve_local, resolve_relation
from mdsite.core.schema import LocalRelation
from mdsite.core.scope import ContextBit, Scope
from mdsite.core.utils.merge import recursively_merged
from mdsite.core.utils.slug import permalink
from mdsite.core.values import Value, to_timestamp


logger = logging.getLogger(__name__)

MAX_EXPANSION_DEPTH = 1
PROPERTIES_SCOPE = "$properties"      # internal scope key for relation items
QUERY_ITEM_SCOPE = "list"
LOCAL_ITEM_SCOPE = "reference"

_DROP = object()

CacheKey = tuple[str, str, str, int]


def sanitize(value: Any) -> Any:
    """Reduce a value to JSON-able data; unsupported leaves are dropped."""
    if isinstance(value, Value):
        value = value.to_python()
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime, date)):
        return to_timestamp(value)
    if isinstance(value, Mapping):
        result = {}
        for k, v in value.items():
            cleaned = sanitize(v)
            if cleaned is not _DROP:
                result[str(k)] = cleaned
        return result
    if isinstance(value, (list, tuple)):
        return [c for c in (sanitize(v) for v in value) if c is not _DROP]
    logger.debug("Dropping unsupported context value of type %s", type(value).__name__)
    return _DROP


class ContextCache:
    """Assembled contexts for one pipeline run, keyed by (type, slug, scope, depth)."""

    def __init__(self):
        self._items: dict[CacheKey, dict[str, Any]] = {}
        self._lock = Lock()

    def get(self, key: CacheKey) -> Optional[dict[str, Any]]:
        with self._lock:
            return self._items.get(key)

    def put(self, key: CacheKey, context: dict[str, Any]) -> None:
        with self._lock:
            self._items[key] = context

    def __len__(self) -> int:
        return len(self._items)


def _raw_body(content: Content) -> Any:
    return content.body


class ContextAssembler:
    """Builds render contexts for one pipeline over a fixed set of contents.

    Returned dicts are shared through the cache; callers build new dicts
    (`recursively_merged`) instead of mutating them.
    """

    def __init__(
        self,
        pipeline: Pipeline,
        contents: Sequence[Content],
        base_url: str = "",
        render_body: Callable[[Content], Any] = _raw_body,
        cache: Optional[ContextCache] = None,
        now: float = 0.0,
        ):
        self.pipeline = pipeline
        self.contents = list(contents)
        self.base_url = base_url
        self.render_body = render_body
        self.cache = cache if cache is not None else ContextCache()
        self.now = now
        self._views: dict[tuple[str, Optional[Order]], list[Content]] = {}
        self._views_lock = Lock()

    def scope_for(self, content: Content, scope_key: str) -> Scope:
        if scope_key == PROPERTIES_SCOPE:
            return Scope.properties_only()
        return self.pipeline.get_scope(scope_key, content.definition_id)

    # --- layers ---

    def _identity(self, content: Content) -> dict[str, Any]:
        return {
            "id": content.id,
            "slug": content.slug,
            "permalink": permalink(content.slug, self.base_url),
            "isCurrentURL": False,
            "lastUpdate": content.last_modified,
        }

    def _relations(self, content: Content, depth: int) -> dict[str, Any]:
        layer = {}
        for key, schema in content.definition.relations.items():
            items = resolve_relation(content, key, schema, self.contents)
            layer[key] = [self.assemble(item, PROPERTIES_SCOPE, depth + 1) for item in items]
        return layer

    def _queries(self, content: Content, depth: int) -> dict[str, Any]:
        layer = {}
        for key, query in content.definition.queries.items():
            resolved = query.resolve_filter_parameters(content.query_fields)
            items = run_query(resolved, self.contents, self.now)
            scope_key = query.scope or QUERY_ITEM_SCOPE
            layer[key] = [self.assemble(item, scope_key, depth + 1) for item in items]
        return layer

    # --- assembly ---

    def assemble(self, content: Content, scope_key: str = "detail", depth: int = 0) -> dict[str, Any]:
        key = (content.definition_id, content.slug, scope_key, depth)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        scope = self.scope_for(content, scope_key)
        expand = depth < MAX_EXPANSION_DEPTH
        layers: list[dict[str, Any]] = []

        if scope.includes(ContextBit.user_defined):
            layers.append(content.user_defined)
        if scope.includes(ContextBit.properties):
            layers.append(self._identity(content))
        if scope.includes(ContextBit.contents):
            layers.append({"contents": self.render_body(content)})
        if scope.includes(ContextBit.properties):
            layers.append(content.properties)
        if scope.includes(ContextBit.relations) and expand:
            layers.append(self._relations(content, depth))
        if scope.includes(ContextBit.queries) and expand:
            layers.append(self._queries(content, depth))

        context: dict[str, Any] = {}
        for layer in layers:
            context = recursively_merged(context, layer)
        if scope.fields:
            allowed = set(scope.fields)
            context = {k: v for k, v in context.items() if k in allowed}

        context = sanitize(context)
        self.cache.put(key, context)
        return context

    def standard_context(self, content: Content) -> dict[str, Any]:
        return self.assemble(content, "detail")

    def view(self, local: LocalRelation) -> list[Content]:
        """Sorted same-type view for a local relation, built once per (type, order)."""
        key = (local.references, local.order)
        with self._views_lock:
            refs = self._views.get(key)
            if refs is None:
                refs = self._views[key] = local_view(local, self.contents)
        return refs

    def local_context(self, content: Content) -> dict[str, Any]:
        """Local pseudo-relations ($prev, $next, $same, back-references) for one item."""
        return {
            key: [
                self.assemble(item, LOCAL_ITEM_SCOPE, MAX_EXPANSION_DEPTH)
                for item in resolve_local(content, key, local, self.contents, self.view(local))
            ]
            for key, local in content.definition.local.items()
        }

    def full_context(self, content: Content, scope_key: str = "detail") -> dict[str, Any]:
        return recursively_merged(self.assemble(content, scope_key), self.local_context(content))
