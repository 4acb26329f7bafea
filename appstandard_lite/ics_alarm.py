"""Alarm TRIGGER parsing for ICS calendar processing - AppStandard Lite.

A raw TRIGGER value is the persisted form of an alarm. The structured
``AlarmTrigger`` is always derived from it on demand by the pure functions
below; nothing is cached between calls.
"""

import logging
import re
from collections.abc import Iterable
from typing import Any, Optional, Union

from .ics_duration import format_duration, format_negative_duration, parse_duration
from .lite_models import AlarmTrigger, DurationUnit, EventAlarm, TriggerWhen

logger = logging.getLogger(__name__)

_ABSOLUTE_TRIGGER_RE = re.compile(r"^[0-9]{8}T[0-9]{6}Z?$")

DEFAULT_TRIGGER = AlarmTrigger(when=TriggerWhen.BEFORE, value=15, unit=DurationUnit.MINUTES)


def default_trigger(settings: Any = None) -> AlarmTrigger:
    """Build the fallback trigger from settings (15 minutes before by default)."""
    if settings is None:
        return DEFAULT_TRIGGER
    return AlarmTrigger(
        when=getattr(settings, "default_alarm_when", DEFAULT_TRIGGER.when),
        value=getattr(settings, "default_alarm_value", DEFAULT_TRIGGER.value),
        unit=getattr(settings, "default_alarm_unit", DEFAULT_TRIGGER.unit),
    )


def parse_alarm_trigger(raw: Optional[str]) -> Optional[AlarmTrigger]:
    """Parse a raw TRIGGER value.

    A leading ``-`` places the alarm before the event; an unsigned or ``+``
    duration places it after. An absolute DATE-TIME value yields
    ``{when: "at", value: 0, unit: "minutes"}``.

    Args:
        raw: TRIGGER value such as ``-PT15M``, ``PT30M`` or ``20240115T093000Z``

    Returns:
        AlarmTrigger, or None if the value cannot be interpreted
    """
    if raw is None:
        return None

    text = raw.strip()
    if not text:
        return None

    if _ABSOLUTE_TRIGGER_RE.match(text):
        return AlarmTrigger(when=TriggerWhen.AT, value=0, unit=DurationUnit.MINUTES)

    duration = parse_duration(text)
    if duration is None:
        return None

    when = TriggerWhen.BEFORE if text.startswith("-") else TriggerWhen.AFTER
    return AlarmTrigger(when=when, value=duration.value, unit=duration.unit)


def derive_trigger(raw: Optional[str], default: Optional[AlarmTrigger] = None) -> AlarmTrigger:
    """Return the structured trigger for ``raw``, or the fallback when it does not parse.

    The fallback is substituted once per call and never combined with a
    previous result.
    """
    trigger = parse_alarm_trigger(raw)
    if trigger is not None:
        return trigger

    logger.debug("Falling back to default trigger for %r", raw)
    return default if default is not None else DEFAULT_TRIGGER


def derive_triggers(
    alarms: Iterable[Union[str, EventAlarm, None]], default: Optional[AlarmTrigger] = None
) -> list[AlarmTrigger]:
    """Derive one trigger per alarm; entries that do not parse each get the fallback."""
    triggers = []
    for alarm in alarms:
        raw = alarm.trigger if isinstance(alarm, EventAlarm) else alarm
        triggers.append(derive_trigger(raw, default))
    return triggers


def format_alarm_trigger(
    when: Union[TriggerWhen, str], value: int, unit: Union[DurationUnit, str]
) -> str:
    """Render a structured trigger back to a TRIGGER duration.

    ``before`` produces a negative duration and ``after`` a positive one.
    Absolute (``at``) triggers carry their own DATE-TIME and render as ``""``.
    """
    when_key = when.value if isinstance(when, TriggerWhen) else str(when)
    if when_key == TriggerWhen.AT.value:
        return ""
    if when_key == TriggerWhen.BEFORE.value:
        return format_negative_duration(value, unit)
    return format_duration(value, unit)


def format_trigger(trigger: AlarmTrigger) -> str:
    """Render an AlarmTrigger model back to its TRIGGER duration."""
    return format_alarm_trigger(trigger.when, trigger.value, trigger.unit)
