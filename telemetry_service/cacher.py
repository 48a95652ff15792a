"""
Telemetry Cacher

Fetches the mission-control tracking files on a fixed interval, writes them to
the cache directory and keeps a history of raw state vectors in redis.

The cacher is the only part of the service that performs I/O. The pipeline
receives the text this module has already read from disk.

Persistence policy:
    Files are always written to disk. Redis is best-effort: when it is
    unreachable the state-vector history is disabled for the process and the
    cacher keeps running.
"""

import json
import logging
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import redis
import requests

from telemetry_service.config import REFRESH_KINDS, TELEMETRY_FILES, ServiceConfig

logger = logging.getLogger(__name__)


class TelemetryUnavailable(LookupError):
    """Raised when a telemetry file has not been cached yet or cannot be read."""


def connect_redis(url: str) -> Optional[redis.Redis]:
    """Connect to redis, None when the server is not reachable."""
    try:
        client = redis.from_url(url, decode_responses=True)
        client.ping()
        logger.info("Redis connection established")
        return client
    except redis.exceptions.RedisError as e:
        logger.warning(f"Redis connection failed: {e}. State-vector history will be disabled.")
        return None


class TelemetryCacher:
    """
    Periodic fetch of ``veh.data`` and ``veh.sv`` into the cache directory.

    Args:
        config: Service configuration (class or instance)
        session: HTTP session, a new ``requests.Session`` when omitted
        redis_client: Redis client; when omitted one is created from
            ``config.REDIS_URL`` unless ``use_redis`` is False
        use_redis: Set to False to disable the state-vector history
    """

    def __init__(self, config=ServiceConfig, session: Optional[requests.Session] = None,
                 redis_client: Optional[redis.Redis] = None, use_redis: bool = True):
        self.config = config
        self.cache_dir = Path(config.CACHE_DIR)
        self.session = session or requests.Session()
        if redis_client is None and use_redis:
            redis_client = connect_redis(config.REDIS_URL)
        self.redis_client = redis_client
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def path_for(self, kind: str) -> Path:
        if kind not in TELEMETRY_FILES:
            raise TelemetryUnavailable(f"Unspecified telemetry kind: {kind}")
        return self.cache_dir / TELEMETRY_FILES[kind]['file_name']

    def load(self, kind: str) -> str:
        """
        Cached text for a logical telemetry kind.

        Raises:
            TelemetryUnavailable: The file is unknown, missing or unreadable
        """
        path = self.path_for(kind)
        try:
            return path.read_text()
        except OSError as e:
            raise TelemetryUnavailable(f"Could not open file {path}: {e}") from e

    def save_file(self, kind: str) -> Path:
        """
        Fetch one telemetry file and write it to the cache directory.

        The file is replaced atomically so readers never see a partial write.

        Raises:
            requests.RequestException: The fetch failed
            TelemetryUnavailable: Unknown telemetry kind
        """
        path = self.path_for(kind)
        url = self.config.SOURCE_BASE + TELEMETRY_FILES[kind]['path']

        response = self.session.get(url, timeout=self.config.FETCH_TIMEOUT)
        response.raise_for_status()
        body = response.text

        path.parent.mkdir(parents=True, exist_ok=True)
        temporary = path.with_name(path.name + '.tmp')
        temporary.write_text(body)
        os.replace(temporary, path)
        logger.info(f"Successfully cached {path.name} to disk")

        if kind == 'sv':
            self.store_state_vector(body)
        return path

    def store_state_vector(self, body: str, created: Optional[datetime] = None) -> bool:
        """Push a raw state-vector file onto the bounded redis history."""
        if self.redis_client is None:
            return False

        created = created or datetime.now(timezone.utc)
        record = json.dumps({'data': body, 'created': created.isoformat()})
        try:
            pipe = self.redis_client.pipeline()
            pipe.lpush(self.config.STATEVECTOR_KEY, record)
            pipe.ltrim(self.config.STATEVECTOR_KEY, 0, self.config.STATEVECTOR_HISTORY - 1)
            pipe.execute()
        except redis.exceptions.RedisError as e:
            logger.warning(f"Could not save state vector to redis: {e}. History disabled.")
            self.redis_client = None
            return False

        logger.info("Successfully saved veh.sv to database")
        return True

    def refresh(self) -> int:
        """Fetch every refreshed kind once; returns the number of files cached."""
        cached = 0
        with self._lock:
            for kind in REFRESH_KINDS:
                try:
                    self.save_file(kind)
                    cached += 1
                except requests.RequestException as e:
                    logger.warning(f"Failed to fetch {kind} telemetry: {e}")
                except OSError as e:
                    logger.error(f"Failed to write {kind} telemetry: {e}")
        return cached

    def _run(self) -> None:
        while not self._stop_event.wait(self.config.CACHER_INTERVAL):
            self.refresh()

    def start(self) -> bool:
        """Start the refresh loop; False when it is already running."""
        if self.running:
            return False
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name='telemetry-cacher', daemon=True)
        self._thread.start()
        logger.info("Cacher: started.")
        return True

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Stop the refresh loop; False when it was not running."""
        if not self.running:
            return False
        self._stop_event.set()
        self._thread.join(timeout)
        self._thread = None
        logger.info("Cacher: stopped.")
        return True
