import os
import sys
import tempfile

# Add the project root to sys.path so tests can import main, config and gresources
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Keep test runs from writing log files into the working directory
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="gresources_logs_"))
