"""
Anti-replay instance registry.

Every rendered form carries a single-use instance token. The registry keeps
the outstanding tokens per client bucket, keyed by (client address, user name,
user agent). A submission is a valid postback only if its token is
outstanding in its bucket; the token is consumed the moment it is accepted,
so the same rendering can be posted back only once.

THREADING:
The registry is shared by all requests of a process. Buckets are created
atomically under the registry lock; issuing and consuming tokens take only
the bucket's own lock, so requests from different clients never wait for
each other.

Tokens do not survive the process. Restarting the server invalidates every
outstanding form, which then re-renders as an invalid postback.
"""

import logging
import threading
import uuid
from typing import Callable, Dict, List, Optional, Tuple

from formstate.exceptions import InvalidPostBackError
from formstate.postback import PostBackState

logger = logging.getLogger(__name__)


class _Bucket:
    """Outstanding tokens of one client."""

    __slots__ = ('lock', 'tokens')

    def __init__(self):
        self.lock = threading.Lock()
        self.tokens: List[str] = []


class InstanceRegistry:
    """
    Process-wide table of outstanding instance tokens.

    Construct one at application startup and pass it to every Form; nothing in
    this package keeps a module-level instance.

    Example:
        registry = InstanceRegistry()
        key = registry.bucket_key("10.0.0.1", "alice", "Mozilla/5.0")
        token = registry.issue(key)
        state, next_token = registry.resolve(key, token)
        # state is VALID_POSTBACK, and only next_token is outstanding now
    """

    def __init__(self, token_factory: Optional[Callable[[], str]] = None):
        """
        Args:
            token_factory: Creates new tokens; defaults to random uuid hex.
        """
        self._token_factory = token_factory or (lambda: uuid.uuid4().hex)
        self._buckets: Dict[str, _Bucket] = {}
        self._lock = threading.Lock()

    @staticmethod
    def bucket_key(client_address: str, user_name: str, user_agent: str) -> str:
        return f"{client_address}#{user_name}#{user_agent}"

    def _get_bucket(self, key: str) -> _Bucket:
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = _Bucket()
                self._buckets[key] = bucket
            return bucket

    def issue(self, key: str) -> str:
        """Mint a new token and make it outstanding in the bucket."""
        token = self._token_factory()
        bucket = self._get_bucket(key)
        with bucket.lock:
            bucket.tokens.append(token)
        logger.debug(f"Issued instance token {token} for bucket {key!r}")
        return token

    def consume(self, key: str, token: str) -> bool:
        """Consume an outstanding token.

        Returns:
            True if the token was outstanding; it is not any more afterwards.
        """
        bucket = self._get_bucket(key)
        with bucket.lock:
            try:
                bucket.tokens.remove(token)
            except ValueError:
                return False
        logger.debug(f"Consumed instance token {token} for bucket {key!r}")
        return True

    def resolve(self, key: str, submitted_token: Optional[str],
                raise_on_invalid: bool = False) -> Tuple[PostBackState, str]:
        """
        Fix the postback state of a request and issue the token for its rendering.

        Args:
            key: Bucket key of the requesting client
            submitted_token: Token posted back with the form, None if none was
            raise_on_invalid: Raise InvalidPostBackError instead of issuing a token

        Returns:
            The postback state and the new outstanding token
        """
        if submitted_token is None:
            state = PostBackState.NO_POSTBACK
        elif self.consume(key, submitted_token):
            state = PostBackState.VALID_POSTBACK
        else:
            logger.warning(f"Instance token {submitted_token!r} is not outstanding for bucket {key!r}")
            if raise_on_invalid:
                raise InvalidPostBackError(key, submitted_token)
            state = PostBackState.INVALID_POSTBACK
        return state, self.issue(key)

    def is_outstanding(self, key: str, token: str) -> bool:
        bucket = self._get_bucket(key)
        with bucket.lock:
            return token in bucket.tokens

    def outstanding_count(self, key: Optional[str] = None) -> int:
        """Number of outstanding tokens in one bucket, or in all buckets if key is None."""
        with self._lock:
            buckets = list(self._buckets.values()) if key is None else [self._buckets.get(key)]
        count = 0
        for bucket in buckets:
            if bucket is not None:
                with bucket.lock:
                    count += len(bucket.tokens)
        return count

    def flush(self) -> None:
        """Discard every outstanding token, e.g. periodically to bound memory."""
        with self._lock:
            self._buckets.clear()
        logger.debug("Flushed instance registry")
