from vouchind.api.index_chain import index_chain
from vouchind.api.read import ReadAPI

__all__ = [
    "ReadAPI",
    "index_chain",
]
