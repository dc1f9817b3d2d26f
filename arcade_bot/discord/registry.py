from __future__ import annotations

import importlib
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from .descriptors import CommandDescriptor, EventDescriptor

logger = logging.getLogger(__name__)

COMMAND = "command"
EVENT = "event"

# Platform limits for chat input commands
_NAME_RE = re.compile(r"^[-_a-z0-9]{1,32}$")
_MAX_DESCRIPTION = 100
_MAX_OPTIONS = 25

# A source is either a dotted module path (imported lazily) or a ready object
Source = Union[str, object]


@dataclass(frozen=True)
class Candidate:
    """A raw capability object produced by discover(), not yet validated."""

    source: str
    obj: Optional[object]
    error: Optional[str] = None


def _import_module(mod_path: str) -> Tuple[Optional[object], Optional[str]]:
    """
    Import a capability module safely.

    Returns: (module_or_none, error_string_or_none)
    """
    try:
        return importlib.import_module(mod_path), None
    except ModuleNotFoundError as e:
        # Only "missing" if the missing name is the module itself; otherwise a dependency is broken.
        missing_name = getattr(e, "name", "") or ""
        if missing_name and (missing_name == mod_path or missing_name.startswith(mod_path + ".")):
            return None, f"missing module: {missing_name}"
        return None, f"import error (dependency missing): {missing_name or str(e)}"
    except Exception as e:
        return None, f"import error: {e}"


def _source_name(obj: object) -> str:
    name = getattr(obj, "__name__", None)
    if isinstance(name, str) and name:
        return name
    ident = getattr(obj, "name", None)
    return f"<{type(obj).__name__} {ident!r}>"


def _validate_command(candidate: Candidate) -> Tuple[Optional[CommandDescriptor], Optional[str]]:
    obj = candidate.obj
    if obj is None:
        return None, candidate.error or "nothing to load"

    name = getattr(obj, "name", None)
    if not isinstance(name, str) or not name:
        return None, 'missing required "name"'
    if not _NAME_RE.match(name):
        return None, f'invalid name {name!r} (1-32 chars of a-z, 0-9, "-" or "_")'

    execute = getattr(obj, "execute", None)
    if not callable(execute):
        return None, 'missing required "execute"'

    description = getattr(obj, "description", None)
    if not isinstance(description, str) or not description.strip():
        return None, 'missing required "description"'
    if len(description) > _MAX_DESCRIPTION:
        return None, f"description too long ({len(description)} > {_MAX_DESCRIPTION})"

    options = getattr(obj, "options", ()) or ()
    if not isinstance(options, (list, tuple)) or not all(isinstance(o, dict) for o in options):
        return None, '"options" must be a list of option objects'
    if len(options) > _MAX_OPTIONS:
        return None, f"too many options ({len(options)} > {_MAX_OPTIONS})"

    cooldown = getattr(obj, "cooldown", 3.0)
    if not isinstance(cooldown, (int, float)) or isinstance(cooldown, bool) or cooldown < 0:
        return None, '"cooldown" must be a non-negative number'

    return (
        CommandDescriptor(
            name=name,
            description=description,
            executor=execute,
            options=tuple(options),
            cooldown=float(cooldown),
            default_member_permissions=getattr(obj, "default_member_permissions", None),
            dm_permission=getattr(obj, "dm_permission", None),
            source=candidate.source,
        ),
        None,
    )


def _validate_event(candidate: Candidate) -> Tuple[Optional[EventDescriptor], Optional[str]]:
    obj = candidate.obj
    if obj is None:
        return None, candidate.error or "nothing to load"

    name = getattr(obj, "name", None)
    if not isinstance(name, str) or not name.strip():
        return None, 'missing required "name"'

    execute = getattr(obj, "execute", None)
    if not callable(execute):
        return None, 'missing required "execute"'

    once = getattr(obj, "once", False)
    if not isinstance(once, bool):
        return None, '"once" must be a boolean'

    return EventDescriptor(name=name, handler=execute, once=once, source=candidate.source), None


class DescriptorRegistry:
    """
    Builds the command and event catalogs from an explicit, ordered list of sources.

    - A malformed source is logged and skipped; it never aborts the load
    - Duplicate names: the last discovered entry wins, with a warning
    - load() replaces both catalogs wholesale
    """

    def __init__(self, command_sources: Sequence[Source] = (), event_sources: Sequence[Source] = ()) -> None:
        self._sources: Dict[str, Tuple[Source, ...]] = {
            COMMAND: tuple(command_sources),
            EVENT: tuple(event_sources),
        }
        self._commands: Dict[str, CommandDescriptor] = {}
        self._events: Dict[str, EventDescriptor] = {}
        self.rejected: List[Tuple[str, str]] = []
        self.collisions: List[Tuple[str, str, str]] = []

    @classmethod
    def default(cls) -> "DescriptorRegistry":
        from .commands import COMMAND_MODULES
        from .listeners import EVENT_MODULES

        return cls(COMMAND_MODULES, EVENT_MODULES)

    def discover(self, kind: str) -> Iterator[Candidate]:
        """Lazily yield candidates of one kind; each call starts over."""
        for src in self._sources[kind]:
            if isinstance(src, str):
                mod, err = _import_module(src)
                yield Candidate(source=src, obj=mod, error=err)
            else:
                yield Candidate(source=_source_name(src), obj=src)

    def validate(self, kind: str, candidate: Candidate) -> Tuple[Optional[Any], Optional[str]]:
        if kind == COMMAND:
            return _validate_command(candidate)
        return _validate_event(candidate)

    def register(self, descriptor: Union[CommandDescriptor, EventDescriptor]) -> None:
        kind = COMMAND if isinstance(descriptor, CommandDescriptor) else EVENT
        catalog: Dict[str, Any] = self._commands if kind == COMMAND else self._events

        previous = catalog.pop(descriptor.name, None)
        if previous is not None:
            logger.warning(
                "Duplicate %s name %r: keeping %s, discarding %s",
                kind,
                descriptor.name,
                descriptor.source,
                previous.source,
            )
            self.collisions.append((descriptor.name, descriptor.source, previous.source))
        catalog[descriptor.name] = descriptor

    def load(self) -> "DescriptorRegistry":
        self._commands = {}
        self._events = {}
        self.rejected = []
        self.collisions = []

        for kind in (COMMAND, EVENT):
            for candidate in self.discover(kind):
                descriptor, reason = self.validate(kind, candidate)
                if descriptor is None:
                    logger.warning("Rejected %s module %s: %s", kind, candidate.source, reason)
                    self.rejected.append((candidate.source, reason or "invalid"))
                    continue
                self.register(descriptor)
                logger.info("Loaded %s: %s (%s)", kind, descriptor.name, candidate.source)

        logger.info(
            "Descriptor registry loaded: commands=%s events=%s rejected=%s duplicates=%s",
            len(self._commands),
            len(self._events),
            len(self.rejected),
            len(self.collisions),
        )
        return self

    def get_commands(self) -> List[CommandDescriptor]:
        return list(self._commands.values())

    def get_events(self) -> List[EventDescriptor]:
        return list(self._events.values())

    def get_command(self, name: str) -> Optional[CommandDescriptor]:
        return self._commands.get(name)


__all__ = ["COMMAND", "EVENT", "Candidate", "DescriptorRegistry", "Source"]
