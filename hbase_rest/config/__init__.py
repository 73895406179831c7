"""Settings, named configuration keys and cluster files."""

from hbase_rest.config.cluster import ClusterConfig, load_cluster_config
from hbase_rest.config.settings import (
    REFRESH_INTERVAL_KEY,
    WORKER_HOST_NAME_PREFIX_KEY,
    WORKER_REST_ENDPOINT_PORT_KEY,
    ClientSettings,
    parse_setting,
    read_setting,
)

__all__ = [
    "REFRESH_INTERVAL_KEY",
    "WORKER_HOST_NAME_PREFIX_KEY",
    "WORKER_REST_ENDPOINT_PORT_KEY",
    "ClientSettings",
    "ClusterConfig",
    "load_cluster_config",
    "parse_setting",
    "read_setting",
]
