"""Regex event patterns matched against decoded plain text.

A pattern turns a line like "You are stunned for 3 rounds" into a
`PatternEvent("stun", SET, 15)` independent of any markup tag.
"""
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError

from sfstream.parser.events import EventAction, PatternEvent

logger = logging.getLogger(__name__)


class EventPattern(BaseModel):
    pattern: str = Field(description="Regular expression searched in each text run")
    event_type: str = Field(description="Event kind, e.g. stun, webbed, prone")
    action: EventAction = Field(default=EventAction.SET, description="set / clear / increment")
    duration: int = Field(default=0, ge=0, description="Base duration in seconds")
    duration_capture: Optional[int] = Field(default=None, ge=0, description="Capture group holding a duration")
    duration_multiplier: float = Field(default=1.0, description="Applied to the captured value, e.g. 5.0 for rounds")
    enabled: bool = Field(default=True)


class EventMatcher:
    """Compiled set of event patterns.

    Invalid regular expressions are logged and left out; they never make
    the whole matcher unusable.
    """

    def __init__(self, patterns: Optional[Dict[str, EventPattern]] = None):
        self._matchers: List[Tuple[str, re.Pattern, EventPattern]] = []
        for name, pattern in (patterns or {}).items():
            if not pattern.enabled:
                continue
            try:
                regex = re.compile(pattern.pattern)
            except re.error as e:
                logger.warning(f"Invalid event pattern '{name}': {e}")
                continue
            if pattern.duration_capture is not None and pattern.duration_capture > regex.groups:
                logger.warning(f"Event pattern '{name}' captures group {pattern.duration_capture} "
                               f"but only has {regex.groups} group(s); using base duration")
            self._matchers.append((name, regex, pattern))

    @classmethod
    def from_config(cls, raw: Dict[str, Any]) -> "EventMatcher":
        """Build a matcher from the `event_patterns` section of the config."""
        patterns = {}
        for name, data in (raw or {}).items():
            try:
                patterns[name] = EventPattern.model_validate(data)
            except ValidationError as e:
                logger.warning(f"Invalid event pattern definition '{name}': {e.error_count()} error(s)")
        return cls(patterns)

    def __len__(self) -> int:
        return len(self._matchers)

    @property
    def names(self) -> List[str]:
        return [name for name, _, _ in self._matchers]

    def match(self, text: str) -> List[PatternEvent]:
        events = []
        for name, regex, pattern in self._matchers:
            m = regex.search(text)
            if not m:
                continue
            duration = pattern.duration
            idx = pattern.duration_capture
            if idx is not None and idx <= regex.groups:
                captured = m.group(idx)
                if captured is not None:
                    try:
                        duration = int(float(captured) * pattern.duration_multiplier)
                    except (ValueError, OverflowError):
                        pass
            logger.debug(f"Event pattern '{name}' matched: {text!r} (duration: {duration}s)")
            events.append(PatternEvent(event_type=pattern.event_type, action=pattern.action,
                                       duration=max(duration, 0)))
        return events
