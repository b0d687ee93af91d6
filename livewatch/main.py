"""Main entry point for the livewatch broadcast notifier."""

import argparse
import signal
import sys
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from livewatch.config.environment import EnvironmentConfig
from livewatch.config.exceptions import ConfigurationError
from livewatch.config.loader import DEFAULT_CANDIDATES, load_config, validate_config_file
from livewatch.config.models import AppConfig
from livewatch.domain.models import NotificationClass
from livewatch.logging import get_logger
from livewatch.logging.config import configure_logging
from livewatch.notifications import (
    LoggingPresenter,
    NotificationDeduplicator,
    NotificationPresenter,
    NotificationService,
    StreamPresenter,
)
from livewatch.oracle import get_prober
from livewatch.oracle.exceptions import ProbeConfigurationError
from livewatch.persistence import (
    CheckRepository,
    CooldownRepository,
    InMemoryKeyValueStore,
    KeyValueStore,
    PreferencesRepository,
    SqlKeyValueStore,
    close_database,
    init_database,
)
from livewatch.pipeline import CycleOutcome, LiveCheckRunner
from livewatch.planner import ReminderScheduler, plan
from livewatch.scheduler import (
    LifecycleEvent,
    LifecycleEventSource,
    PollScheduler,
    build_background_scheduler,
)
from livewatch.utils.timestamps import utc_now
from livewatch.windows import ServiceWindowEvaluator

logger = get_logger(__name__, component="cli")


@dataclass
class Application:
    """Everything the CLI modes need, wired together."""

    app_config: AppConfig
    env_config: EnvironmentConfig
    store: KeyValueStore
    runner: LiveCheckRunner
    poll_scheduler: PollScheduler
    reminders: ReminderScheduler
    preferences: PreferencesRepository
    lifecycle: LifecycleEventSource


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and settle the effective log level.

    Log level priority: CLI > environment > config file > INFO.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level or "INFO"

    return app_config, env_config


def build_application(
    app_config: AppConfig,
    env_config: EnvironmentConfig,
    store: KeyValueStore,
    presenter: Optional[NotificationPresenter] = None,
    scheduler=None,
) -> Application:
    """
    Wire configuration, storage and services into an Application.

    Raises:
        ConfigurationError: If the oracle settings are unusable
    """
    tz = app_config.zone()
    cooldown_repo = CooldownRepository(store)
    check_repo = CheckRepository(store)
    preferences_repo = PreferencesRepository(store)

    deduplicator = NotificationDeduplicator(
        cooldown_repo,
        cooldowns={NotificationClass.LIVE_DETECTED: timedelta(seconds=app_config.polling.live_cooldown_seconds)},
    )
    notification_service = NotificationService(
        app_config.notifications,
        deduplicator,
        presenter=presenter or LoggingPresenter(),
    )

    try:
        prober = get_prober(app_config.oracle, env_config)
    except ProbeConfigurationError as e:
        raise ConfigurationError(
            f"Invalid oracle configuration: {e}",
            suggestions=["Check the oracle section of the config file"],
        ) from e

    runner = LiveCheckRunner(
        evaluator=ServiceWindowEvaluator(app_config.windows(), tz=tz),
        prober=prober,
        notification_service=notification_service,
        check_repository=check_repo,
    )

    background = scheduler or build_background_scheduler(
        misfire_grace_seconds=app_config.polling.interval_seconds
    )
    lifecycle = LifecycleEventSource()
    poll_scheduler = PollScheduler(
        runner=runner,
        interval_seconds=app_config.polling.interval_seconds,
        lifecycle=lifecycle,
        scheduler=background,
    )
    reminders = ReminderScheduler(
        scheduler=background,
        notification_service=notification_service,
        rules=app_config.rules(),
        tz=tz,
        preferences_repository=preferences_repo,
    )

    return Application(
        app_config=app_config,
        env_config=env_config,
        store=store,
        runner=runner,
        poll_scheduler=poll_scheduler,
        reminders=reminders,
        preferences=preferences_repo,
        lifecycle=lifecycle,
    )


def parse_service_ids(value: str) -> List[str]:
    """Split ``early,traditional`` into ids; ``none`` or an empty string means no services."""
    cleaned = value.strip()
    if cleaned.lower() in ("", "none"):
        return []
    return [part.strip() for part in cleaned.split(",") if part.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="livewatch",
        description="livewatch - weekly live-broadcast detection and service reminders",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml, then config/config.yaml)",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--check-now",
        action="store_true",
        help="Run a single live check immediately and exit",
    )
    mode.add_argument(
        "--plan",
        action="store_true",
        help="Print the next reminder instants for the enabled services and exit",
    )
    mode.add_argument(
        "--test-notification",
        action="store_true",
        help="Emit a test notification and exit",
    )
    mode.add_argument(
        "--set-services",
        metavar="IDS",
        default=None,
        help="Persist the enabled services (comma-separated ids, or 'none') and exit",
    )
    mode.add_argument(
        "--validate-config",
        action="store_true",
        help="Validate the configuration file and exit",
    )
    parser.add_argument(
        "--presenter",
        choices=["log", "stdout"],
        default="log",
        help="Where notifications are handed off: the log, or JSON lines on stdout",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Keep state in memory instead of the database",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    return parser


def run_daemon(app: Application, start_time: float) -> int:
    shutdown_event = threading.Event()
    app.poll_scheduler.shutdown_event = shutdown_event

    def signal_handler(signum, frame):
        logger.info(
            f"Received signal {signum}, shutting down",
            extra={"event": "service.signal_received", "signal": signum},
        )
        app.reminders.cancel_all()
        app.poll_scheduler.shutdown(wait=False)

    def wake_handler(signum, frame):
        app.lifecycle.emit(LifecycleEvent.FOREGROUND)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)
    if hasattr(signal, "SIGUSR1"):
        signal.signal(signal.SIGUSR1, wake_handler)

    app.reminders.load_and_apply()
    app.poll_scheduler.start()

    logger.info(
        "Monitoring started. Press Ctrl+C to stop",
        extra={"event": "service.daemon_mode.started", **app.poll_scheduler.status()},
    )

    try:
        shutdown_event.wait()
    except KeyboardInterrupt:
        logger.info(
            "Keyboard interrupt received, shutting down",
            extra={"event": "service.keyboard_interrupt"},
        )
        app.reminders.cancel_all()
        app.poll_scheduler.shutdown(wait=False)

    logger.info(
        "livewatch stopped",
        extra={"event": "service.stopping", "uptime_seconds": round(time.time() - start_time, 2)},
    )
    return 0


def run_once_mode(app: Application, args: argparse.Namespace) -> int:
    if args.check_now:
        result = app.poll_scheduler.trigger_now()
        print(f"Live check: {result.outcome.value} (state: {result.state.value})")
        if result.stream_id:
            print(f"Stream: {result.stream_id}")
        return 1 if result.outcome == CycleOutcome.ERROR else 0

    if args.test_notification:
        result = app.poll_scheduler.send_test_notification()
        print(f"Test notification: {result.status}")
        return 0 if result.is_success() else 1

    if args.set_services is not None:
        try:
            planned = app.reminders.change_preferences(parse_service_ids(args.set_services))
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2
        app.reminders.cancel_all()
        print(f"Enabled services saved; {len(planned)} reminder(s) will be armed")
        for reminder in planned:
            print(f"  {reminder.instant.isoformat()}  {reminder.rule.label}")
        return 0

    # --plan
    config = app.app_config
    preferences = app.preferences.load(rule.id for rule in config.rules())
    planned = plan(preferences, config.rules(), utc_now(), config.zone())
    if not planned:
        print("No services enabled for reminders")
    for reminder in planned:
        print(f"{reminder.instant.isoformat()}  {reminder.rule.describe()}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    load_dotenv()
    start_time = time.time()
    args = build_parser().parse_args(argv)

    if args.validate_config:
        config_path = args.config or next((p for p in DEFAULT_CANDIDATES if p.exists()), None)
        if config_path is None or not config_path.exists():
            print("✗ No configuration file found", file=sys.stderr)
            return 1
        return 0 if validate_config_file(config_path) else 1

    one_shot = args.check_now or args.plan or args.test_notification or args.set_services is not None
    app: Optional[Application] = None

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        logger.info(
            "livewatch starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config) if args.config else None,
                "log_level": env_config.log_level,
                "dry_run": args.dry_run,
            },
        )

        if args.dry_run:
            store: KeyValueStore = InMemoryKeyValueStore()
        else:
            init_database(env_config.database_url)
            store = SqlKeyValueStore()

        logger.info(
            "Configuration loaded",
            extra={
                "event": "config.loaded",
                "service_count": len(app_config.services),
                "streamed_service_count": sum(1 for s in app_config.services if s.streamed),
                "timezone": app_config.timezone,
                "interval_seconds": app_config.polling.interval_seconds,
            },
        )

        presenter = StreamPresenter() if args.presenter == "stdout" else LoggingPresenter()
        app = build_application(app_config, env_config, store, presenter=presenter)

        if one_shot:
            return run_once_mode(app, args)
        return run_daemon(app, start_time)

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error during startup",
            extra={"event": "service.startup.failed", "error_type": type(e).__name__, "error": str(e)},
            exc_info=True,
        )
        return 1
    finally:
        if app is not None and app.poll_scheduler.scheduler.running:
            app.poll_scheduler.shutdown(wait=False)
        close_database()


if __name__ == "__main__":
    sys.exit(main())
