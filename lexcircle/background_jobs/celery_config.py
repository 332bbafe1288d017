# 📄 File: lexcircle/background_jobs/celery_config.py
#
# 🧭 Purpose (Layman Explanation):
# Sets up the background worker that runs the scheduled clean-up of follower numbers and
# follow lists, so mistakes never linger for long.
#
# 🧪 Purpose (Technical Summary):
# Celery configuration and application instance with Redis as broker and result backend,
# a maintenance queue and a beat schedule for the periodic graph repair.
#
# 🔗 Dependencies:
# - celery, kombu
# - Redis server (message broker)
# - lexcircle.shared.config.settings
#
# 🔄 Connected Modules / Calls From:
# - lexcircle/background_jobs/tasks/graph_maintenance.py
# - Worker and beat processes (celery -A lexcircle.background_jobs.celery_config worker)

from datetime import timedelta

from celery import Celery
from kombu import Queue

from lexcircle.shared.config.settings import get_settings

settings = get_settings()

# =============================================================================
# CELERY CONFIGURATION CLASS
# =============================================================================


class CeleryConfig:
    """
    Celery configuration for LexCircle background jobs.
    """

    # =========================================================================
    # BROKER AND BACKEND SETTINGS
    # =========================================================================

    broker_url = settings.CELERY_BROKER_URL
    result_backend = settings.CELERY_RESULT_BACKEND

    broker_connection_retry_on_startup = True
    broker_connection_retry = True
    broker_connection_max_retries = 10

    result_expires = timedelta(hours=24)

    # =========================================================================
    # TASK SETTINGS
    # =========================================================================

    task_serializer = "json"
    result_serializer = "json"
    accept_content = ["json"]
    timezone = "UTC"
    enable_utc = True

    task_default_queue = "default"

    # A full repair walks every user; keep the hard limit well above a normal pass
    task_time_limit = 3600
    task_soft_time_limit = 3300
    task_acks_late = True
    worker_prefetch_multiplier = 1
    task_reject_on_worker_lost = True

    # =========================================================================
    # QUEUE DEFINITIONS
    # =========================================================================

    task_routes = {
        "lexcircle.background_jobs.tasks.graph_maintenance.*": {"queue": "maintenance"},
    }

    task_queues = (
        Queue("maintenance", routing_key="maintenance"),
        Queue("default", routing_key="default"),
    )

    # =========================================================================
    # WORKER SETTINGS
    # =========================================================================

    worker_max_tasks_per_child = 1000
    worker_hijack_root_logger = False
    worker_log_format = "[%(asctime)s: %(levelname)s/%(processName)s] %(message)s"
    worker_task_log_format = "[%(asctime)s: %(levelname)s/%(processName)s][%(task_name)s(%(task_id)s)] %(message)s"

    # =========================================================================
    # BEAT SCHEDULER SETTINGS
    # =========================================================================

    beat_schedule = {
        "repair-subscription-graph": {
            "task": "lexcircle.background_jobs.tasks.graph_maintenance.repair_subscription_graph",
            "schedule": timedelta(hours=settings.GRAPH_REPAIR_INTERVAL_HOURS),
            "options": {"queue": "maintenance"}
        },
    }

    beat_scheduler = "celery.beat:PersistentScheduler"
    beat_schedule_filename = "celerybeat-schedule"

    task_track_started = True
    worker_send_task_events = True


class DevelopmentCeleryConfig(CeleryConfig):
    """Development-specific Celery configuration."""

    worker_log_level = "DEBUG"


class TestCeleryConfig(CeleryConfig):
    """Run tasks inline without a broker."""

    task_always_eager = True
    task_eager_propagates = True
    broker_url = "memory://"
    result_backend = "cache+memory://"


class ProductionCeleryConfig(CeleryConfig):
    """Production-specific Celery configuration."""

    worker_log_level = "INFO"
    worker_max_tasks_per_child = 5000


# =============================================================================
# CONFIG FACTORY
# =============================================================================

def get_celery_config() -> CeleryConfig:
    """
    Get the Celery configuration for the current environment.

    Returns:
        CeleryConfig: Configuration instance for current environment
    """
    config_map = {
        "development": DevelopmentCeleryConfig,
        "test": TestCeleryConfig,
        "staging": ProductionCeleryConfig,
        "production": ProductionCeleryConfig,
    }

    config_class = config_map.get(settings.ENVIRONMENT, DevelopmentCeleryConfig)
    return config_class()


# =============================================================================
# CELERY APPLICATION INSTANCE
# =============================================================================

celery_app = Celery("lexcircle")
celery_app.config_from_object(get_celery_config())

celery_app.autodiscover_tasks(["lexcircle.background_jobs.tasks"], related_name="graph_maintenance")
