"""Shared constants for Temporal workflows."""

# Task Queues
DEFAULT_TASK_QUEUE = "tradenexus-crawler"

# Timeouts
DEFAULT_WORKFLOW_TIMEOUT_SECONDS = 3600  # 1 hour
CRAWLER_ACTIVITY_TIMEOUT_SECONDS = 300   # 5 minutes
STATUS_ACTIVITY_TIMEOUT_SECONDS = 30

# Crawler retry policy defaults
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_INITIAL_RETRY_SECONDS = 1.0
DEFAULT_BACKOFF_COEFFICIENT = 2.0

# Activity names
MARK_JOB_RUNNING_ACTIVITY = "mark_crawler_job_running"
RUN_CRAWLER_JOB_ACTIVITY = "run_crawler_job"
MARK_JOB_COMPLETED_ACTIVITY = "mark_crawler_job_completed"
MARK_JOB_FAILED_ACTIVITY = "mark_crawler_job_failed"
