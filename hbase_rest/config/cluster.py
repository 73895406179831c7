"""Cluster file model and YAML loader.

A cluster file describes the endpoint pool for a virtual network deployment:

    endpoints:                       # explicit pool, rotation order
      - http://10.0.0.4:8090
      - http://10.0.0.5:8090
    # or
    worker_count: 4
    domain_suffix: cluster.internal
    blacklist:
      - http://workernode3.cluster.internal:8090
    settings:                        # named keys override ClientSettings
      HBASE_REST_WORKER_HOST_NAME_PREFIX: workernode
      HBASE_REST_WORKER_REST_ENDPOINT_PORT: "8090"
      HBASE_REST_REFRESH_INTERVAL_MS: "10"
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from hbase_rest.config.settings import (
    REFRESH_INTERVAL_KEY,
    WORKER_HOST_NAME_PREFIX_KEY,
    WORKER_REST_ENDPOINT_PORT_KEY,
    ClientSettings,
    read_setting,
)
from hbase_rest.errors import InvalidArgumentError

logger = logging.getLogger(__name__)


class ClusterConfig(BaseModel):
    """Endpoint pool description loaded from a cluster file."""

    endpoints: list[str] = []
    worker_count: int | None = Field(default=None, ge=1)
    domain_suffix: str | None = None
    blacklist: list[str] = []
    settings: ClientSettings = Field(default_factory=ClientSettings)

    @model_validator(mode="after")
    def _pool_is_defined(self) -> ClusterConfig:
        if not self.endpoints and self.worker_count is None:
            raise ValueError("cluster file must define either 'endpoints' or 'worker_count'")
        return self


def load_cluster_config(yaml_path: str | Path, settings: ClientSettings | None = None) -> ClusterConfig:
    """Parse a cluster YAML file into a ClusterConfig.

    Args:
        yaml_path: Path to the YAML file.
        settings: Base settings; the file's ``settings`` section overrides the
            named keys on a copy of them.

    Raises:
        InvalidArgumentError: The file is missing, unparsable or describes no pool.
    """
    path = Path(yaml_path)
    base = settings or ClientSettings()

    if not path.exists():
        raise InvalidArgumentError(f"Cluster file not found at {path}", path=str(path))

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        logger.error("Failed to parse cluster YAML at %s: %s", path, exc)
        raise InvalidArgumentError(f"Cluster file {path} is not valid YAML", path=str(path)) from exc

    if not isinstance(raw, dict):
        raise InvalidArgumentError(f"Cluster file {path} must contain a mapping", path=str(path))

    overrides = raw.get("settings") or {}
    if not isinstance(overrides, dict):
        raise InvalidArgumentError("Cluster file 'settings' must be a mapping", path=str(path))

    try:
        effective = ClientSettings.model_validate(
            {
                **base.model_dump(),
                "worker_host_name_prefix": read_setting(
                    overrides, WORKER_HOST_NAME_PREFIX_KEY, str, base.worker_host_name_prefix
                ),
                "worker_rest_endpoint_port": read_setting(
                    overrides, WORKER_REST_ENDPOINT_PORT_KEY, int, base.worker_rest_endpoint_port
                ),
                "refresh_interval_ms": read_setting(
                    overrides, REFRESH_INTERVAL_KEY, float, base.refresh_interval_ms
                ),
            }
        )
    except ValidationError as exc:
        raise InvalidArgumentError(f"Invalid settings in cluster file {path}: {exc}", path=str(path)) from exc

    try:
        config = ClusterConfig.model_validate(
            {
                "endpoints": raw.get("endpoints") or [],
                "worker_count": raw.get("worker_count"),
                "domain_suffix": raw.get("domain_suffix"),
                "blacklist": raw.get("blacklist") or [],
                "settings": effective,
            }
        )
    except ValidationError as exc:
        raise InvalidArgumentError(f"Invalid cluster file {path}: {exc}", path=str(path)) from exc

    logger.info(
        "Loaded cluster file %s (%s)",
        path,
        f"{len(config.endpoints)} endpoints" if config.endpoints else f"{config.worker_count} workers",
    )
    return config
