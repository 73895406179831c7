"""Cluster credentials, passed through to the transport as basic auth."""

from __future__ import annotations

from pathlib import Path

import httpx
from pydantic import BaseModel, SecretStr

from hbase_rest.errors import InvalidArgumentError


class ClusterCredentials(BaseModel):
    cluster_uri: str
    username: str
    password: SecretStr

    @classmethod
    def from_file(cls, path: str | Path) -> ClusterCredentials:
        """Read a three-line file: cluster URI, user name, password."""
        path = Path(path)
        if not path.exists():
            raise InvalidArgumentError(f"Credentials file not found at {path}", path=str(path))

        lines = [line.strip() for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]
        if len(lines) < 3:
            raise InvalidArgumentError(
                f"Credentials file {path} must contain cluster URI, user name and password",
                path=str(path),
            )
        return cls(cluster_uri=lines[0], username=lines[1], password=SecretStr(lines[2]))

    def basic_auth(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(self.username, self.password.get_secret_value())
