import os
from dotenv import load_dotenv

# Load environment variables from a .env file when one is present
load_dotenv()

# Float threshold (calendar days) under which a task counts as near-critical
DEFAULT_NEAR_CRITICAL_THRESHOLD_DAYS = 2

# A sequential deliverable starts this many days after its predecessor ends
DEFAULT_SEQUENTIAL_GAP_DAYS = 1

# Logging level used by the command line entry point
DEFAULT_LOG_LEVEL = os.getenv("SCHEDFLOW_LOG_LEVEL", "INFO")
