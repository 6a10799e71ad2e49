"""
Lifecycle composition for rule-injected tests.

The composer turns a test body plus its class and method directives into
one callable. Calling it installs every resource, runs the body, and
removes every installed resource again on every exit path:

    class config -> class scripts -> class rules
        method config -> method scripts -> method rules
            body
        method rules -> method scripts -> method config
    class rules -> class scripts -> class config

Each resource is one link in a closure chain. The chain is built by
folding links from the innermost to the outermost, so the first link in
install order ends up outermost and is removed last.

Failure handling per link:
- install fails: SetupError, the link's inner chain never runs, outer links unwind
- body fails: the body's exception propagates unchanged after all teardown
- uninstall or config pop fails: reported to the failure sink, never raised
"""

import functools
import logging
from typing import Any, Callable, Iterable, List, Optional

from core.agent import AgentClient
from core.config import ConfigStack
from core.directives import DirectiveDescriptor, DirectiveKind, RuleDescriptor, validate_scope
from core.errors import SetupError, TeardownError
from core.failures import FailureSink, LoggingFailureSink, TestIdentity
from core.handles import HandleRegistry, ResourceHandle
from core.script_text import build_script_text
from core.structured_events import EventBuilder, EventEmitter
from utils import console
from utils.error_messages import format_setup_error, format_teardown_error
from utils.resolution import resolve_load_directory, resolve_script_name


logger = logging.getLogger(__name__)

ExecutionUnit = Callable[[], Any]


class _Link:
    """One install/uninstall pair. Each call of the wrapped unit opens a fresh handle."""

    kind = "resource"
    is_rule = False
    registered = True

    def __init__(self, owner: Any, name: str):
        self.owner = owner
        self.name = name

    def open(self) -> ResourceHandle:
        return ResourceHandle(self.owner, self.name, kind=self.kind)

    def install(self, handle: ResourceHandle) -> None:
        raise NotImplementedError

    def uninstall(self, handle: ResourceHandle) -> None:
        raise NotImplementedError


class _ConfigLink(_Link):
    kind = "config"
    registered = False

    def __init__(self, stack: ConfigStack, owner: Any, fields: dict):
        super().__init__(owner, "config")
        self.stack = stack
        self.fields = fields

    def install(self, handle):
        self.stack.push(self.owner, self.fields)

    def uninstall(self, handle):
        self.stack.pop(self.owner)


class _ScriptFileLink(_Link):
    kind = "script"

    def __init__(self, client: AgentClient, stack: ConfigStack, owner: Any, name: str,
                 directory: Optional[str], resolve_directory: Callable):
        super().__init__(owner, name)
        self.client = client
        self.stack = stack
        self.directory = directory
        self.resolve_directory = resolve_directory
        self.source = None

    def install(self, handle):
        # config links outside this one are live by now
        load_dir = self.resolve_directory(self.directory, self.stack.effective('load_directory'))
        self.source = self.client.load_script_file(self.owner, self.name, load_dir)

    def uninstall(self, handle):
        self.client.unload_script_file(self.owner, self.name)


class _RuleLink(_Link):
    kind = "rule"
    is_rule = True

    def __init__(self, client: AgentClient, owner: Any, name: str, text: str):
        super().__init__(owner, name)
        self.client = client
        self.text = text

    def install(self, handle):
        self.client.load_script_text(self.owner, self.name, self.text)

    def uninstall(self, handle):
        self.client.unload_script_text(self.owner, self.name)


def identity_for(unit: ExecutionUnit) -> TestIdentity:
    """Best-effort test identity for a callable (bound test method or function)."""
    target = getattr(unit, '__self__', None)
    if target is not None:
        cls = type(target)
        return TestIdentity(f"{cls.__module__}.{cls.__qualname__}", getattr(unit, '__name__', None))
    module = getattr(unit, '__module__', None) or '<unknown>'
    return TestIdentity(module, getattr(unit, '__qualname__', None))


class Composer:
    """
    Builds wrapped execution units.

    Args:
        client: Script loading operations on the agent
        sink: Receives teardown failures
        stack: Configuration stack shared by all units this composer builds
        events: Lifecycle event emitter
        build_text: Rule descriptors -> rule script text
        resolve_name: (raw script value, method name) -> script name or None
        resolve_directory: (directive dir, configured dir) -> load directory
    """

    def __init__(
        self,
        client: AgentClient,
        sink: Optional[FailureSink] = None,
        stack: Optional[ConfigStack] = None,
        events: Optional[EventEmitter] = None,
        build_text: Callable[[Iterable[RuleDescriptor]], str] = build_script_text,
        resolve_name: Callable[[Optional[str], Optional[str]], Optional[str]] = resolve_script_name,
        resolve_directory: Callable[[Optional[str], Optional[str]], str] = resolve_load_directory,
    ):
        self.client = client
        self.sink = sink if sink is not None else LoggingFailureSink()
        self.stack = stack if stack is not None else ConfigStack()
        self.events = events if events is not None else EventEmitter(enable_console=False)
        self.registry = HandleRegistry()
        self._builder = EventBuilder(self.events)
        self._build_text = build_text
        self._resolve_name = resolve_name
        self._resolve_directory = resolve_directory

    def wrap(
        self,
        base_unit: ExecutionUnit,
        class_directives: Iterable[DirectiveDescriptor] = (),
        method_directives: Iterable[DirectiveDescriptor] = (),
        identity: Optional[TestIdentity] = None,
    ) -> ExecutionUnit:
        """
        Wrap base_unit with class-scope resources around method-scope resources.

        Raises:
            ConfigurationConflict: Either scope holds exclusive directives.
                Raised here, before anything is installed.
        """
        identity = identity or identity_for(base_unit)
        class_ordered = validate_scope(class_directives, scope=f"class {identity.class_name}")
        method_ordered = validate_scope(method_directives, scope=f"test {identity}")

        method_links = self._links(method_ordered, identity, identity.method_name)
        class_links = self._links(class_ordered, identity, None)

        unit = self._body(base_unit, identity)
        unit = self._fold(method_links, unit, identity)
        unit = self._fold(class_links, unit, identity)
        return self._outermost(unit, identity)

    def wrap_scope(
        self,
        unit: ExecutionUnit,
        directives: Iterable[DirectiveDescriptor],
        identity: TestIdentity,
        method_name: Optional[str] = None,
    ) -> ExecutionUnit:
        """Wrap unit with one scope's resources only (e.g. around a whole class run)."""
        ordered = validate_scope(directives, scope=str(identity))
        return self._fold(self._links(ordered, identity, method_name), unit, identity)

    def _links(self, ordered: List[DirectiveDescriptor], identity: TestIdentity,
               method_name: Optional[str]) -> List[_Link]:
        """Expand directives, already in install order, into links in install order."""
        links: List[_Link] = []
        for directive in ordered:
            if directive.kind == DirectiveKind.CONFIG:
                links.append(_ConfigLink(self.stack, directive.owner, directive.payload))
            elif directive.kind in (DirectiveKind.SCRIPT, DirectiveKind.SCRIPT_LIST):
                for item in directive.items():
                    name = self._resolve_name(item.payload, method_name) or identity.class_name
                    links.append(_ScriptFileLink(
                        self.client, self.stack, item.owner, name, item.directory, self._resolve_directory
                    ))
            else:
                for rule in directive.rules():
                    links.append(_RuleLink(self.client, directive.owner, rule.name, self._build_text([rule])))
        return links

    def _fold(self, links: List[_Link], unit: ExecutionUnit, identity: TestIdentity) -> ExecutionUnit:
        return functools.reduce(
            lambda inner, link: self._scoped(link, inner, identity),
            reversed(links),
            unit
        )

    def _scoped(self, link: _Link, inner: ExecutionUnit, identity: TestIdentity) -> ExecutionUnit:
        def run():
            handle = link.open()
            # teardown is a no-op unless the install itself went through
            try:
                self._install(link, handle, identity)
                handle.start_running()
                return inner()
            except BaseException as e:
                handle.record_failure(e)
                raise
            finally:
                self._teardown(link, handle, identity)
        return run

    def _install(self, link: _Link, handle: ResourceHandle, identity: TestIdentity) -> None:
        if link.registered:
            try:
                self.registry.claim(handle)
            except SetupError as e:
                self._builder.setup_failed(identity, handle.describe(), e)
                raise

        try:
            handle.install(functools.partial(link.install, handle))
        except BaseException as e:
            self.registry.release(handle)
            if not isinstance(e, Exception):
                raise
            self._builder.setup_failed(identity, handle.describe(), e)
            if isinstance(e, SetupError):
                raise
            raise SetupError(
                format_setup_error(handle.describe(), link.owner, e),
                owner=link.owner,
                name=link.name,
            ) from e

        try:
            if isinstance(link, _ConfigLink):
                self._builder.config_pushed(identity, link.owner, link.fields)
            else:
                source = str(link.source) if isinstance(link, _ScriptFileLink) else None
                self._builder.installed(identity, link.owner, link.name, link.is_rule, source=source)
            self._trace(f"installed {handle.describe()} for {link.owner}")
        except Exception as e:
            raise SetupError(
                format_setup_error(handle.describe(), link.owner, e),
                owner=link.owner,
                name=link.name,
            ) from e

    def _teardown(self, link: _Link, handle: ResourceHandle, identity: TestIdentity) -> None:
        primary = handle.error if handle.failed else None
        try:
            removed = handle.uninstall(functools.partial(link.uninstall, handle))
        except Exception as e:
            self._builder.teardown_failed(identity, handle.describe(), e, primary=primary)
            self._report(identity, self._teardown_error(link, handle, e, primary))
            return
        finally:
            self.registry.release(handle)

        if not removed:
            return

        try:
            if isinstance(link, _ConfigLink):
                self._builder.config_popped(identity, link.owner)
            else:
                self._builder.uninstalled(identity, link.owner, link.name, link.is_rule)
            self._trace(f"removed {handle.describe()} for {link.owner}")
        except Exception as e:
            self._report(identity, self._teardown_error(link, handle, e, primary))

    def _teardown_error(self, link: _Link, handle: ResourceHandle, error: Exception,
                        primary: Optional[BaseException]) -> TeardownError:
        return TeardownError(
            format_teardown_error(handle.describe(), link.owner, error, kind=link.kind),
            owner=link.owner,
            name=link.name,
            original=error,
            primary=primary,
        )

    def _report(self, identity: TestIdentity, failure: TeardownError) -> None:
        try:
            self.sink.report(identity, failure)
        except Exception:
            logger.exception(f"Failure sink raised while reporting teardown failure for {identity}")

    def _body(self, base_unit: ExecutionUnit, identity: TestIdentity) -> ExecutionUnit:
        def run():
            try:
                return base_unit()
            except BaseException as e:
                self._builder.body_failed(identity, e)
                raise
        return run

    def _outermost(self, unit: ExecutionUnit, identity: TestIdentity) -> ExecutionUnit:
        def run():
            self._builder.unit_started(identity)
            result = unit()
            self._builder.unit_completed(identity)
            return result
        run.identity = identity
        return run

    def _trace(self, message: str) -> None:
        if self.stack.effective('verbose'):
            console.trace(message)
        logger.debug(message)
