import logging
import re
import threading
import json
import os
import tempfile
from datetime import datetime, timezone

from constants import ALLOWED_IMAGE_EXTENSIONS

# Global lock for all JSON writes in this process
_json_write_lock = threading.Lock()

# Custom logging formatter to support colors
class ColoredFormatter(logging.Formatter):
    # Define color codes
    COLORS = {
        'DEBUG': '\033[94m',   # Blue
        'INFO': '\033[92m',    # Green
        'WARNING': '\033[93m', # Yellow
        'ERROR': '\033[91m',   # Red
        'CRITICAL': '\033[95m' # Magenta
    }
    RESET = '\033[0m'  # Reset color

    def format(self, record):
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"

        return super().format(record)

# Filter to remove date from http access logs
class FilterRemoveDateFromWerkzeugLogs(logging.Filter):
    # '192.168.0.102 - - [30/Jun/2024 01:14:03] "%s" %s %s' -> '192.168.0.102 - "%s" %s %s'
    pattern: re.Pattern = re.compile(r' - - \[.+?] "')

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.pattern.sub(' - "', record.msg)
        return True


def get_or_create_secret_key(data_dir, filename='.secret_key'):
    """
    Generate or load a persistent secret key for session cookie signing.
    The key is stored in data_dir/filename with restricted permissions.

    Returns:
        str: 64-character hex secret key
    """
    import secrets

    logger = logging.getLogger('main')
    secret_key_file = os.path.join(data_dir, filename)

    # Try to load existing key
    if os.path.exists(secret_key_file):
        try:
            with open(secret_key_file, 'r') as f:
                key = f.read().strip()
                if len(key) == 64:
                    return key
                logger.warning("Invalid secret key found, generating new one")
        except OSError as e:
            logger.error(f"Error reading secret key: {e}")

    key = secrets.token_hex(32)  # 32 bytes = 64 hex chars

    try:
        os.makedirs(data_dir, exist_ok=True)

        with open(secret_key_file, 'w') as f:
            f.write(key)

        # owner read/write only
        os.chmod(secret_key_file, 0o600)

        logger.info("Generated new secret key and saved to disk")
    except OSError as e:
        logger.error(f"Error saving secret key: {e}")
        logger.warning("Using non-persistent secret key")

    return key


def allowed_image(filename, mimetype):
    """Both the extension and the MIME type must name an allowed image format."""
    if not filename or '.' not in filename:
        return False
    extension = filename.rsplit('.', 1)[1].lower()
    subtype = (mimetype or '').split('/')[-1].lower()
    return extension in ALLOWED_IMAGE_EXTENSIONS and subtype in ALLOWED_IMAGE_EXTENSIONS


def safe_write_json(path, data, **dump_kwargs):
    with _json_write_lock:
        dirpath = os.path.dirname(path) or "."
        # Default options
        options = {'ensure_ascii': False, 'indent': 2}
        options.update(dump_kwargs)

        # Create temporary file in same directory
        with tempfile.NamedTemporaryFile("w", dir=dirpath, delete=False, encoding="utf-8") as tmp:
            tmp_path = tmp.name
            try:
                json.dump(data, tmp, **options)
                tmp.flush()
                os.fsync(tmp.fileno())  # flush to disk
            except Exception:
                tmp.close()
                os.unlink(tmp_path)
                raise
        # Atomically replace target file
        try:
            os.replace(tmp_path, path)
        except OSError:
            os.unlink(tmp_path)
            raise

def format_size_py(size):
    if size is None: return "0 B"
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size < 1024:
            return f"{size:.2f} {unit}"
        size /= 1024
    return f"{size:.2f} TB"

def now_utc():
    """Returns current datetime in UTC (aware)"""
    return datetime.now(timezone.utc)

def now_iso():
    """Current UTC time as an ISO-8601 string, the format stored in users.json"""
    return now_utc().isoformat().replace('+00:00', 'Z')
