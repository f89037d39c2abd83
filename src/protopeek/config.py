import logging
import os

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("PROTOPEEK_LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("PROTOPEEK_LOG_FILE")  # unset = stderr
OUTPUT_DIR = os.getenv("PROTOPEEK_OUTPUT_DIR", "output")
MAX_MESSAGE_BYTES = int(os.getenv("PROTOPEEK_MAX_MESSAGE_BYTES", str(4 * 1024 * 1024)))
HOST = os.getenv("PROTOPEEK_HOST", "127.0.0.1")
PORT = int(os.getenv("PROTOPEEK_PORT", "8000"))

LOG_FORMAT = '[%(asctime)s] %(levelname)s %(name)s: %(message)s'


def setup_logging(level=None, filename=None):
    """Configure the root logger once; later calls are no-ops (basicConfig)."""
    level = (level or LOG_LEVEL).upper()
    filename = filename or LOG_FILE
    if filename:
        logging.basicConfig(filename=filename, format=LOG_FORMAT, level=level)
    else:
        logging.basicConfig(format=LOG_FORMAT, level=level)
