"""Load-balanced HTTP exchanges and the response envelope."""

from hbase_rest.requester.options import RequestOptions
from hbase_rest.requester.requester import HTTP_METHODS, Requester, create_http_client
from hbase_rest.requester.response import Response

__all__ = [
    "HTTP_METHODS",
    "RequestOptions",
    "Requester",
    "Response",
    "create_http_client",
]
