import logging
import os

# Set up the test environment before importing any application code.
# Host MAZE_* settings must not leak into configuration tests.
for _name in [name for name in os.environ if name.startswith("MAZE_")]:
    del os.environ[_name]

os.environ.setdefault("LOG_LEVEL", "INFO")
os.environ.setdefault("ERROR_INCLUDE_DETAILS", "false")

logging.getLogger("src").setLevel(logging.DEBUG)
