from dataclasses import dataclass, field
from typing import Dict

from .version import __version__

@dataclass(frozen=True)
class TransportConfig:
    """
    Configuration for the default requests transport.

    Attributes:
        connect_timeout: Connection timeout in seconds (default: 10.0)
        read_timeout: Read timeout in seconds (default: 60.0)
        retries: Number of retries for failed requests (default: 3)
        backoff_factor: Exponential backoff factor for retries (default: 0.5)
        pool_connections: Number of connection pools (default: 10)
        pool_maxsize: Maximum size of each pool (default: 10)
        headers: Custom HTTP headers to include in every request
    """
    connect_timeout: float = 10.0
    read_timeout: float = 60.0
    retries: int = 3
    backoff_factor: float = 0.5
    pool_connections: int = 10
    pool_maxsize: int = 10
    headers: Dict[str, str] = field(default_factory=lambda: {
        'User-Agent': f'urlfile/{__version__}',
        # Byte offsets must address the stored representation
        'Accept-Encoding': 'identity',
        'Connection': 'keep-alive'
    })
