"""
chartbridge: Registry
---------------------
Centralized, namespaced registry for chart-type identifiers and chart presets
with a unified factory interface.

Behavior
--------
- Entries are keyed ``"namespace:name"`` (names are case-insensitive);
  support eager registration and dotted-path lazy registration; the factory
  resolves entries and returns either the object itself or the result of
  calling it, according to metadata.
- Namespace ``chart_type`` lists chart types. Built-in identifiers (``line``,
  ``bar``, ``pie``, ``scatter``) are registered with ``builtin=True``; custom
  identifiers are understood only by the rendering surface and are listed for
  discovery, never used to reject a chart.
- Namespace ``preset`` holds zero-argument builders returning ``ChartSpec``.

Notes
-----
- Dotted import supports both ``module:attr`` and ``module.attr`` forms.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from importlib import import_module
from typing import Any

from .errors import RegistryError

__all__ = [
    "RegistryCenter",
    "registry",
    "register",
    "register_lazy",
    "register_chart_type",
    "is_builtin_type",
    "BUILTIN_CHART_TYPES",
]

Namespace = str
Name = str
FullName = str

BUILTIN_CHART_TYPES = ("line", "bar", "pie", "scatter")


@dataclass
class _Entry:
    """Internal record: a registered object or a dotted import target."""

    kind: str  # "object" | "dotted"
    obj: Any = None
    target: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)


class RegistryCenter:
    """Central registry with factory-style lookup.

    Methods
    -------
    register(namespace, name, obj, *, overwrite=False, **meta) -> None
        Register an object immediately. Raises RegistryError on duplicates
        ([600]).
    register_lazy(namespace, name, target, *, overwrite=False, **meta) -> None
        Register a dotted path for deferred import ([601] on duplicates).
    decorator(namespace, name, **meta) -> Callable
        Return a decorator that registers the decorated object on import.
    get(full_name) -> Any
        Resolve an entry without calling it ([604] unknown, [602]/[603] import).
    create(full_name, /, **kwargs) -> Any
        Resolve an entry and call it with ``kwargs`` when it is callable.
    list(namespace=None) -> dict[str, Any]
        Entries with metadata for a namespace, or names for every namespace.

    Examples
    --------
    >>> rc = RegistryCenter()
    >>> rc.register("default", "adder", lambda x, y: x + y, return_callable=True)
    >>> add = rc.create("default:adder")
    >>> add(1, 2)
    3
    """

    def __init__(self) -> None:
        self._tables: dict[Namespace, dict[Name, _Entry]] = {}

    # --------------------------- utilities ---------------------------
    @staticmethod
    def _split(full_name: FullName) -> tuple[Namespace, Name]:
        """Split ``"namespace:name"``; a bare name uses namespace ``default``."""
        if ":" in full_name:
            ns, nm = full_name.split(":", 1)
            return ns.strip().lower(), nm.strip().lower()
        return "default", full_name.strip().lower()

    def _table(self, namespace: Namespace) -> dict[Name, _Entry]:
        return self._tables.setdefault(namespace.strip().lower(), {})

    @staticmethod
    def _base_meta(meta: dict[str, Any]) -> dict[str, Any]:
        full_meta = dict(meta or {})
        full_meta.setdefault("registered_at", datetime.now(timezone.utc).isoformat())
        return full_meta

    # --------------------------- registration ---------------------------
    def register(
        self, namespace: Namespace, name: Name, obj: Any, *, overwrite: bool = False, **meta: Any
    ) -> None:
        """Register an object immediately under a namespace.

        Raises
        ------
        RegistryError
            - [600] Duplicate registration when ``overwrite`` is False.
        """
        ns, nm = namespace.strip().lower(), name.strip().lower()
        table = self._table(ns)
        if not overwrite and nm in table:
            raise RegistryError(f"[600] Duplicate registration: {ns}:{nm}")
        full_meta = self._base_meta(meta)
        full_meta.setdefault("delayed_import", False)
        table[nm] = _Entry(kind="object", obj=obj, meta=full_meta)

    def register_lazy(
        self, namespace: Namespace, name: Name, target: str, *, overwrite: bool = False, **meta: Any
    ) -> None:
        """Register by dotted path without importing until first use.

        Raises
        ------
        RegistryError
            - [601] Duplicate lazy registration when ``overwrite`` is False.
        """
        ns, nm = namespace.strip().lower(), name.strip().lower()
        table = self._table(ns)
        if not overwrite and nm in table:
            raise RegistryError(f"[601] Duplicate lazy registration: {ns}:{nm}")
        full_meta = self._base_meta(meta)
        full_meta.setdefault("delayed_import", True)
        full_meta.setdefault("module_path", target)
        table[nm] = _Entry(kind="dotted", target=str(target), meta=full_meta)

    def decorator(self, namespace: Namespace, name: Name, **meta: Any) -> Callable[[Any], Any]:
        """Return a decorator that registers the object on import."""

        def _wrap(obj: Any) -> Any:
            self.register(namespace, name, obj, **meta)
            return obj

        return _wrap

    def unregister(self, full_name: FullName) -> bool:
        ns, nm = self._split(full_name)
        return self._tables.get(ns, {}).pop(nm, None) is not None

    # --------------------------- lookup ---------------------------
    def contains(self, full_name: FullName) -> bool:
        ns, nm = self._split(full_name)
        return nm in self._tables.get(ns, {})

    def meta(self, full_name: FullName) -> dict[str, Any]:
        ns, nm = self._split(full_name)
        entry = self._tables.get(ns, {}).get(nm)
        if entry is None:
            raise RegistryError(f"[604] Unknown registry key: {ns}:{nm}")
        return dict(entry.meta)

    def get(self, full_name: FullName) -> Any:
        """Resolve an entry to its object, importing dotted targets.

        Raises
        ------
        RegistryError
            - [604] Unknown registry key.
            - [602] Failed to import a dotted target.
            - [603] Target attribute not found in its module.
        """
        ns, nm = self._split(full_name)
        entry = self._tables.get(ns, {}).get(nm)
        if entry is None:
            raise RegistryError(f"[604] Unknown registry key: {ns}:{nm}")
        if entry.kind == "object":
            return entry.obj
        assert entry.target is not None
        try:
            return self._import_target(entry.target)
        except ImportError as e:
            raise RegistryError(
                f"[602] Failed to import {ns} '{nm}' from '{entry.target}': {e}"
            ) from e

    def create(self, full_name: FullName, /, **kwargs: Any) -> Any:
        """Resolve an entry and build it.

        Returns the object itself when ``return_callable`` is set in its
        metadata or when it is not callable; otherwise returns
        ``obj(**kwargs)``.
        """
        obj = self.get(full_name)
        if self.meta(full_name).get("return_callable") or not callable(obj):
            return obj
        return obj(**kwargs)

    def _import_target(self, target: str) -> Any:
        if ":" in target:
            module_name, attr_name = target.split(":", 1)
        elif "." in target:
            module_name, attr_name = target.rsplit(".", 1)
        else:
            return import_module(target)
        mod = import_module(module_name)
        if not hasattr(mod, attr_name):
            raise RegistryError(f"[603] Target '{target}' not found")
        return getattr(mod, attr_name)

    # --------------------------- introspection ---------------------------
    def list(self, namespace: Namespace | None = None) -> dict[str, Any]:
        """List entries with metadata, in registration order.

        With ``namespace=None`` returns a mapping of namespace to entry names.
        """
        if namespace is None:
            return {ns: list(tbl.keys()) for ns, tbl in self._tables.items()}
        table = self._tables.get(namespace.strip().lower(), {})
        return {name: {"kind": e.kind, **e.meta} for name, e in table.items()}


# Global singleton
registry = RegistryCenter()


def register(namespace: Namespace, name: Name, **meta: Any) -> Callable[[Any], Any]:
    """Decorator form of ``registry.register``.

    Examples
    --------
    >>> @register("preset", "revenue_bar")
    ... def revenue_bar():
    ...     return ChartSpec.create("revenue", rows, encode={"x": "date", "y": "revenue"})
    """
    return registry.decorator(namespace, name, **meta)


def register_lazy(namespace: Namespace, name: Name, target: str, **meta: Any) -> None:
    """Register by dotted path on the global registry."""
    registry.register_lazy(namespace, name, target, **meta)


def register_chart_type(
    name: str,
    *,
    builtin: bool = False,
    description: str = "",
    overwrite: bool = False,
    center: RegistryCenter | None = None,
) -> None:
    """List a chart-type identifier.

    Custom identifiers (``builtin=False``) are opaque: the rendering surface is
    the only party that knows how to draw them.
    """
    (center or registry).register(
        "chart_type", name, name, overwrite=overwrite, builtin=builtin, description=description
    )


def is_builtin_type(name: str, *, center: RegistryCenter | None = None) -> bool:
    """True if ``name`` is registered as a built-in chart type."""
    center = center or registry
    key = f"chart_type:{name}"
    return center.contains(key) and bool(center.meta(key).get("builtin"))


for _name in BUILTIN_CHART_TYPES:
    register_chart_type(_name, builtin=True, description=f"Built-in {_name} chart")
