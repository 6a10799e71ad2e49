"""
Structured lifecycle events.

The composer records one event per lifecycle step (config push/pop, script
or rule install/uninstall, setup, body and teardown failures). Events are:
- Kept in order, so the buffer reads as a trace of the run
- Mirrored to standard logging at a level matching their severity
- Optionally appended to a JSON lines file
"""

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from pathlib import Path
from typing import Any, Dict, List, Optional


logger = logging.getLogger(__name__)


class EventType(Enum):
    """Lifecycle steps the runner reports."""
    UNIT_STARTED = auto()
    UNIT_COMPLETED = auto()
    BODY_FAILED = auto()

    CONFIG_PUSHED = auto()
    CONFIG_POPPED = auto()

    SCRIPT_INSTALLED = auto()
    SCRIPT_UNINSTALLED = auto()
    RULE_INSTALLED = auto()
    RULE_UNINSTALLED = auto()

    SETUP_FAILED = auto()
    TEARDOWN_FAILED = auto()


class EventSeverity(Enum):
    """Severity of an event, mapped onto logging levels."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


# Context keys repeated in the log line
_LOGGED_KEYS = ('test', 'owner', 'name')


@dataclass
class StructuredEvent:
    """One lifecycle event."""
    event_id: str
    event_type: EventType
    timestamp: datetime
    severity: EventSeverity
    message: str
    context: Dict[str, Any] = field(default_factory=dict)
    session_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'event_id': self.event_id,
            'event_type': self.event_type.name,
            'timestamp': self.timestamp.isoformat(),
            'severity': self.severity.name,
            'message': self.message,
            'context': self.context,
            'session_id': self.session_id,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    @classmethod
    def from_dict(cls, data: dict) -> 'StructuredEvent':
        """Rebuild an event written by to_dict."""
        fields = dict(data)
        fields['event_type'] = EventType[fields['event_type']]
        fields['severity'] = EventSeverity[fields['severity']]
        fields['timestamp'] = datetime.fromisoformat(fields['timestamp'])
        return cls(**fields)

    def log_line(self) -> str:
        shown = [f"{key}={self.context[key]}" for key in _LOGGED_KEYS if key in self.context]
        suffix = f" | {', '.join(shown)}" if shown else ""
        return f"[{self.event_type.name}] {self.message}{suffix}"


class EventEmitter:
    """
    Collects events for one session.

    Args:
        log_file: JSON lines file to append to; None keeps events in memory only
        session_id: Groups events of one run; a random id when None
        enable_console: Mirror each event to standard logging
    """

    def __init__(
        self,
        log_file: Optional[Path] = None,
        session_id: Optional[str] = None,
        enable_console: bool = True,
    ):
        self.log_file = Path(log_file) if log_file is not None else None
        self.session_id = session_id or str(uuid.uuid4())
        self.enable_console = enable_console
        self.event_buffer: List[StructuredEvent] = []

        if self.log_file is not None:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)

    def emit(
        self,
        event_type: EventType,
        message: str,
        severity: EventSeverity = EventSeverity.INFO,
        context: Optional[Dict] = None,
    ) -> StructuredEvent:
        """Record an event and return it."""
        event = StructuredEvent(
            event_id=str(uuid.uuid4()),
            event_type=event_type,
            timestamp=datetime.now(),
            severity=severity,
            message=message,
            context=context or {},
            session_id=self.session_id,
        )
        self.event_buffer.append(event)

        if self.enable_console:
            logger.log(severity.value, event.log_line())

        if self.log_file is not None:
            self._append(event)

        return event

    def _append(self, event: StructuredEvent):
        try:
            with open(self.log_file, 'a', encoding='utf-8') as f:
                f.write(event.to_json() + '\n')
        except OSError as e:
            logger.error(f"Failed to write event to {self.log_file}: {e}")

    def get_session_events(self) -> List[StructuredEvent]:
        return list(self.event_buffer)

    def query_events(
        self,
        event_type: Optional[EventType] = None,
        severity: Optional[EventSeverity] = None,
        since: Optional[datetime] = None,
    ) -> List[StructuredEvent]:
        """Buffered events matching every filter given."""
        return [
            e for e in self.event_buffer
            if (event_type is None or e.event_type == event_type)
            and (severity is None or e.severity == severity)
            and (since is None or e.timestamp >= since)
        ]

    def clear(self):
        self.event_buffer.clear()


class EventBuilder:
    """One method per lifecycle event, so call sites stay short."""

    def __init__(self, emitter: EventEmitter):
        self.emitter = emitter

    def _emit(self, event_type, message, severity, test, **context):
        return self.emitter.emit(event_type, message, severity=severity,
                                 context={'test': str(test), **context})

    def unit_started(self, test: Any) -> StructuredEvent:
        return self._emit(EventType.UNIT_STARTED, f"Running {test}", EventSeverity.DEBUG, test)

    def unit_completed(self, test: Any) -> StructuredEvent:
        return self._emit(EventType.UNIT_COMPLETED, f"Completed {test}", EventSeverity.DEBUG, test)

    def body_failed(self, test: Any, error: BaseException) -> StructuredEvent:
        return self._emit(
            EventType.BODY_FAILED,
            f"Test body raised {type(error).__name__}: {error}",
            EventSeverity.WARNING, test,
            error=repr(error),
        )

    def config_pushed(self, test: Any, owner: Any, fields: Dict[str, Any]) -> StructuredEvent:
        return self._emit(
            EventType.CONFIG_PUSHED, f"Pushed config for {owner}", EventSeverity.DEBUG, test,
            owner=str(owner), fields=dict(fields),
        )

    def config_popped(self, test: Any, owner: Any) -> StructuredEvent:
        return self._emit(
            EventType.CONFIG_POPPED, f"Popped config for {owner}", EventSeverity.DEBUG, test,
            owner=str(owner),
        )

    def installed(self, test: Any, owner: Any, name: str, is_rule: bool,
                  source: Optional[str] = None) -> StructuredEvent:
        kind = 'rule' if is_rule else 'script'
        extra = {'source': source} if source else {}
        return self._emit(
            EventType.RULE_INSTALLED if is_rule else EventType.SCRIPT_INSTALLED,
            f"Installed {kind} {name}", EventSeverity.INFO, test,
            owner=str(owner), name=name, **extra,
        )

    def uninstalled(self, test: Any, owner: Any, name: str, is_rule: bool) -> StructuredEvent:
        kind = 'rule' if is_rule else 'script'
        return self._emit(
            EventType.RULE_UNINSTALLED if is_rule else EventType.SCRIPT_UNINSTALLED,
            f"Uninstalled {kind} {name}", EventSeverity.INFO, test,
            owner=str(owner), name=name,
        )

    def setup_failed(self, test: Any, resource: str, error: BaseException) -> StructuredEvent:
        return self._emit(
            EventType.SETUP_FAILED, f"Failed to install {resource}: {type(error).__name__}",
            EventSeverity.ERROR, test,
            name=resource, error=str(error),
        )

    def teardown_failed(self, test: Any, resource: str, error: BaseException,
                        primary: Optional[BaseException] = None) -> StructuredEvent:
        extra = {'primary': repr(primary)} if primary is not None else {}
        return self._emit(
            EventType.TEARDOWN_FAILED, f"Failed to remove {resource}: {type(error).__name__}",
            EventSeverity.ERROR, test,
            name=resource, error=str(error), **extra,
        )
