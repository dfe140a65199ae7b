import random
import threading
from typing import Optional


class RandomSource:
    """
    Secure randomness shared by mask and handshake key generation.

    It is either available, wrapping a generator, or unavailable. The latter
    is a supported degraded mode: frames go out unmasked and the handshake key
    is all zeros, because the alternative is a client that can't connect at all.
    Access to the generator is serialized, so one instance can be shared by
    every thread of a connection.

    """

    def __init__(self, generator: Optional[random.Random] = None):
        self._generator = generator
        self._lock = threading.Lock()

    @classmethod
    def available(cls, generator: random.Random) -> 'RandomSource':
        return cls(generator)

    @classmethod
    def unavailable(cls) -> 'RandomSource':
        return cls(None)

    @classmethod
    def system(cls) -> 'RandomSource':
        """
        Use the operating system's randomness, or fall back to unavailable when
        the platform doesn't provide one.
        """
        generator = random.SystemRandom()
        try:
            generator.getrandbits(8)
        except NotImplementedError:
            return cls.unavailable()
        return cls.available(generator)

    @property
    def is_available(self) -> bool:
        return self._generator is not None

    def mask(self) -> Optional[bytes]:
        """Return a fresh 4-bytes masking key, or :obj:`None` when unavailable."""
        with self._lock:
            if self._generator is None:
                return None
            return self._generator.randbytes(4)

    def nonce(self, size: int = 16) -> bytes:
        """Return ``size`` random bytes, or zeros when unavailable."""
        with self._lock:
            if self._generator is None:
                return bytes(size)
            return self._generator.randbytes(size)
