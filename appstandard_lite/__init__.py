"""appstandard_lite - ICS / VCF core for the AppStandard productivity apps.

Date, duration and alarm-trigger codecs, tag lists, vCard generation and
parsing, ICS parsing and generation with RRULE expansion, and the merge /
duplicate-removal engine used by the calendar, contacts and tasks apps.
"""

__version__ = "0.1.0"

from typing import TYPE_CHECKING, Optional

from .duplicate_detection import (
    DuplicateCheckConfig,
    are_contacts_duplicates,
    are_events_duplicates,
    are_tasks_duplicates,
    deduplicate_contacts,
    deduplicate_events,
    deduplicate_tasks,
)
from .ics_alarm import DEFAULT_TRIGGER, derive_trigger, format_alarm_trigger, parse_alarm_trigger
from .ics_date import format_date_to_ics, parse_date_from_ics
from .ics_duration import duration_to_minutes, format_duration, format_negative_duration, parse_duration
from .ics_generator import generate_ics, generate_todo_ics
from .lite_parser import parse_ics_content
from .merge_engine import MergeEngine
from .share_bundle import bundle_scope, fetch_bundle_content, render_bundle
from .tag_list import add_tag, get_last_tag, has_tag, parse_tags, remove_tag, stringify_tags
from .vcard import check_qr_payload, generate_vcard, generate_vcf_file, parse_vcf

if TYPE_CHECKING:
    from .config_loader import Config


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Installs a colorized console handler once and sets the root level. The
    APPSTANDARD_DEBUG environment variable (truthy values: "1", "true",
    "yes", "on") forces DEBUG regardless of ``level_name``.
    """
    import logging
    import os
    import sys

    from colorlog import ColoredFormatter

    debug_env = os.environ.get("APPSTANDARD_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    # Only configure a handler if none is present to avoid duplicate output.
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        # HH:MM:SS  LEVEL   logger.name: message, only the level is colorized
        fmt = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
        log_colors = {
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        }
        handler.setFormatter(ColoredFormatter(fmt, datefmt="%H:%M:%S", log_colors=log_colors))
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        level = getattr(logging, level_name.upper(), logging.INFO)
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)
    logging.getLogger(__name__).debug("Logging initialized at level %s", logging.getLevelName(level))


def setup(config_path: Optional[str] = None, debug_mode: bool = False) -> "Config":
    """Initialize logging and load configuration for an embedding application.

    Behavior:
    - Initialize console logging early using APPSTANDARD_LOG_LEVEL (env) if present.
    - Load the YAML/JSON config (defaults when the file is missing).
    - Re-apply the log level from the config's ``log_level`` unless the
      environment already chose one, then tune package and library loggers.

    Returns:
        The loaded Config
    """
    import logging
    import os

    from .config_loader import load_config
    from .lite_logging import configure_lite_logging

    _init_logging(os.environ.get("APPSTANDARD_LOG_LEVEL"))

    cfg = load_config(config_path)
    env_level = os.environ.get("APPSTANDARD_LOG_LEVEL")

    configure_lite_logging(debug_mode=debug_mode or cfg.log_level == "DEBUG")
    if not env_level and not debug_mode and cfg.log_level in ("WARNING", "ERROR"):
        logging.getLogger().setLevel(getattr(logging, cfg.log_level))
    return cfg


__all__ = [
    "DEFAULT_TRIGGER",
    "DuplicateCheckConfig",
    "MergeEngine",
    "__version__",
    "add_tag",
    "are_contacts_duplicates",
    "are_events_duplicates",
    "are_tasks_duplicates",
    "bundle_scope",
    "check_qr_payload",
    "deduplicate_contacts",
    "deduplicate_events",
    "deduplicate_tasks",
    "derive_trigger",
    "duration_to_minutes",
    "fetch_bundle_content",
    "format_alarm_trigger",
    "format_date_to_ics",
    "format_duration",
    "format_negative_duration",
    "generate_ics",
    "generate_todo_ics",
    "generate_vcard",
    "generate_vcf_file",
    "get_last_tag",
    "has_tag",
    "parse_alarm_trigger",
    "parse_date_from_ics",
    "parse_duration",
    "parse_ics_content",
    "parse_tags",
    "remove_tag",
    "parse_vcf",
    "render_bundle",
    "setup",
    "stringify_tags",
]
