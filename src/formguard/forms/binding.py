"""Field bindings and property-path resolution.

A FieldBinding records which property of the form model a UI field edits.
The path is either declared explicitly (``FieldBinding.of("address.city")``)
or recovered from an accessor (``FieldBinding.accessor(lambda m: m.address.city)``)
by running it against a recording proxy.

Failures are explicit: extraction raises PathError, try_resolve() returns a
PathResult, and PathResolver applies a PathErrorPolicy to decide whether a
failed binding is treated as unbound.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from formguard.core.paths import get_path_value

if TYPE_CHECKING:
    from formguard.forms.fields import FieldHandle

logger = logging.getLogger(__name__)

# Dotted identifier path: "city", "address.city", "lines_0.text"
_PATH_PATTERN = re.compile(r"^[A-Za-z_]\w*(\.[A-Za-z_]\w*)*$")


class PathError(Exception):
    """Raised when a binding's property path cannot be determined."""


class PathErrorPolicy(Enum):
    """What PathResolver does with a binding whose path cannot be extracted."""

    UNBOUND = "unbound"  # Treat the field as unbound
    RAISE = "raise"  # Propagate the PathError


@dataclass(frozen=True)
class PathResult:
    """Outcome of resolving a field's property path.

    Attributes:
        path: The dotted path, or "" when unbound or failed
        error: The extraction failure, if any
    """

    path: str = ""
    error: PathError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class _PathRecorder:
    """Proxy that records attribute and string-key access."""

    __slots__ = ("_segments",)

    def __init__(self, segments: tuple[str, ...] = ()):
        object.__setattr__(self, "_segments", segments)

    def __getattr__(self, name: str) -> "_PathRecorder":
        if name.startswith("__"):
            raise AttributeError(name)
        return _PathRecorder(self._segments + (name,))

    def __getitem__(self, key: Any) -> "_PathRecorder":
        if not isinstance(key, str):
            raise PathError(f"Unsupported index {key!r} in binding accessor")
        return _PathRecorder(self._segments + (key,))

    def __setattr__(self, name: str, value: Any) -> None:
        raise PathError("Binding accessors must not assign")

    def __bool__(self) -> bool:
        raise PathError("Binding accessors must not branch on the model")


def extract_path(accessor: Callable[[Any], Any]) -> str:
    """Recover the dotted path an accessor reads.

    Raises:
        PathError: If the accessor is not a plain member-access chain
    """
    try:
        recorded = accessor(_PathRecorder())
    except PathError:
        raise
    except Exception as e:
        raise PathError(f"Binding accessor failed: {e}") from e

    if not isinstance(recorded, _PathRecorder):
        raise PathError(
            f"Binding accessor returned {type(recorded).__name__}, expected a member access"
        )
    if not recorded._segments:
        raise PathError("Binding accessor returned the model itself")

    return ".".join(recorded._segments)


@dataclass(frozen=True)
class FieldBinding:
    """Declares which model property a field is bound to.

    Exactly one of ``declared_path`` and ``getter`` is set.
    """

    declared_path: str | None = None
    getter: Callable[[Any], Any] | None = None

    @classmethod
    def of(cls, path: str) -> "FieldBinding":
        """Bind to an explicit dotted path."""
        return cls(declared_path=path)

    @classmethod
    def accessor(cls, getter: Callable[[Any], Any]) -> "FieldBinding":
        """Bind via an accessor such as ``lambda m: m.address.city``."""
        return cls(getter=getter)

    def path(self) -> str:
        """The bound property path.

        Raises:
            PathError: If the declared path is malformed or the accessor
                cannot be recorded
        """
        if self.declared_path is not None:
            if not _PATH_PATTERN.match(self.declared_path):
                raise PathError(f"Malformed property path '{self.declared_path}'")
            return self.declared_path
        if self.getter is not None:
            return extract_path(self.getter)
        raise PathError("Binding declares neither a path nor an accessor")

    def read(self, model: Any) -> Any:
        """Read the bound value from the model."""
        return get_path_value(model, self.path())


class PathResolver:
    """Resolves field handles to the property paths they are bound to.

    try_resolve() never raises. resolve() applies the configured policy:
    with PathErrorPolicy.UNBOUND (the default) a failed extraction resolves
    to "" exactly like an unbound field, so that field is never matched as
    a dependent.
    """

    def __init__(self, policy: PathErrorPolicy = PathErrorPolicy.UNBOUND):
        self.policy = policy

    def try_resolve(self, handle: "FieldHandle") -> PathResult:
        if handle.is_unbound:
            return PathResult()
        try:
            return PathResult(path=handle.bound_property_path())
        except PathError as e:
            return PathResult(error=e)
        except Exception as e:
            # Handles are external; any failure counts as an extraction failure
            return PathResult(error=PathError(str(e)))

    def resolve(self, handle: "FieldHandle") -> str:
        """Resolve a handle to its property path, or "" when unbound.

        Raises:
            PathError: Only under PathErrorPolicy.RAISE
        """
        result = self.try_resolve(handle)
        if result.ok:
            return result.path

        if self.policy is PathErrorPolicy.RAISE:
            raise result.error
        logger.debug("Treating field %r as unbound: %s", handle, result.error)
        return ""
