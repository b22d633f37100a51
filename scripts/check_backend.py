import sys
import os

sys.path.append(os.getcwd())

from jobboard.core.config import settings
from jobboard.core.exceptions import AppException
from jobboard.services.backend import BackendClient
from jobboard.services.jobs import JOBS_TABLE

def check_backend():
    try:
        backend = BackendClient.from_settings(settings)
        backend.ping()
        published = backend.select(JOBS_TABLE, columns="id", filters={"job_status": "published"}, limit=1, count=True)
        print(f"Backend reachable at {backend.rest_url}")
        print(f"Published listings: {published.total}")
    except AppException as e:
        print(f"Error: {e.message}")
        sys.exit(1)

if __name__ == "__main__":
    check_backend()
